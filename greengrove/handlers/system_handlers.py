# greengrove/handlers/system_handlers.py
import logging
from fastapi import APIRouter, Depends, Response
from ..database import BaseDatabase
from .base_handler import get_db
from .schemas import ClientLogRequest, HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["system"])


@router.get("/health", response_model=HealthResponse)
async def health(db: BaseDatabase = Depends(get_db)):
    return HealthResponse(ok=await db.ping())


@router.post("/logs", status_code=204)
async def client_log(body: ClientLogRequest):
    """Frontend events are written to the server log only."""
    logger.info(f"[client-log] {body.action} {body.model_dump(exclude={'action'})}")
    return Response(status_code=204)
