# greengrove/app.py
import logging
from contextlib import asynccontextmanager
from typing import Optional
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .config import Config
from .database import BaseDatabase, create_database
from .handlers import ROUTERS, register_error_handlers

class GreenGroveAPI:
    def __init__(self, db: Optional[BaseDatabase] = None):
        """Build the FastAPI app around a store backend"""
        self.db = db or create_database()
        self.logger = logging.getLogger(__name__)
        self.app = FastAPI(
            title="GreenGrove Market API",
            description="Catalog, orders, service bookings and payments",
            lifespan=self.lifespan,
        )
        self.app.state.db = self.db
        self.setup_handlers()

    @asynccontextmanager
    async def lifespan(self, app: FastAPI):
        await self.db.connect()
        try:
            yield
        finally:
            await self.db.close()

    def setup_handlers(self):
        """Register middleware, error handlers and routers"""
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=Config.CORS_ORIGINS,
            allow_credentials=False,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        register_error_handlers(self.app)

        for router in ROUTERS:
            self.app.include_router(router, prefix=Config.API_PREFIX)

    async def start(self):
        server = uvicorn.Server(uvicorn.Config(
            self.app,
            host=Config.API_HOST,
            port=Config.API_PORT,
            log_config=None,
        ))
        self.logger.info(f"[API] listening on http://{Config.API_HOST}:{Config.API_PORT}")
        await server.serve()

def create_app(db: Optional[BaseDatabase] = None) -> FastAPI:
    """App factory, e.g. ``uvicorn --factory greengrove.app:create_app``"""
    return GreenGroveAPI(db).app
