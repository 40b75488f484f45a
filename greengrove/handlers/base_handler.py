# greengrove/handlers/base_handler.py
import logging
from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from ..database import BaseDatabase
from ..errors import (
    ConflictError,
    GreenGroveError,
    NotFoundError,
    StorageFault,
    ValidationError,
)
from ..services import BookingService, CatalogService, OrderService, PaymentService

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    ValidationError: 400,
    NotFoundError: 404,
    ConflictError: 409,
    StorageFault: 500,
}


def status_code_for(exc: GreenGroveError) -> int:
    for cls in type(exc).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return 500


def error_body(message: str, error_type: str) -> dict:
    return {"error": message, "error_type": error_type}


async def greengrove_error_handler(request: Request, exc: GreenGroveError) -> JSONResponse:
    """Map GreenGroveError subclasses to HTTP responses"""
    status_code = status_code_for(exc)
    if status_code >= 500:
        # detail stays in the server log
        logger.error(f"{request.method} {request.url.path} failed: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=status_code,
            content=error_body("Internal server error", type(exc).__name__),
        )
    return JSONResponse(status_code=status_code, content=error_body(str(exc), type(exc).__name__))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies, paths and queries are 400s"""
    problems = "; ".join(
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    )
    return JSONResponse(
        status_code=400,
        content=error_body(f"Invalid payload: {problems}", "ValidationError"),
    )


def register_error_handlers(app: FastAPI):
    app.add_exception_handler(GreenGroveError, greengrove_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------
def get_db(request: Request) -> BaseDatabase:
    return request.app.state.db


def get_catalog_service(db: BaseDatabase = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


def get_order_service(db: BaseDatabase = Depends(get_db)) -> OrderService:
    return OrderService(db)


def get_booking_service(db: BaseDatabase = Depends(get_db)) -> BookingService:
    return BookingService(db)


def get_payment_service(db: BaseDatabase = Depends(get_db)) -> PaymentService:
    return PaymentService(db)
