# File: busbuzz/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi import _rate_limit_exceeded_handler

from busbuzz.core.config import Settings, cors_origins_list, settings
from busbuzz.core.errors import register_error_handlers
from busbuzz.core.ratelimit import limiter
from busbuzz.db.session import Database
from busbuzz.routers import attachments, auth, buses, reports, routes, users
from busbuzz.services.storage import BlobStore, make_blob_store

logger = logging.getLogger(__name__)


def create_app(cfg: Optional[Settings] = None, database: Optional[Database] = None,
               blobs: Optional[BlobStore] = None) -> FastAPI:
    cfg = cfg or settings
    logging.basicConfig(
        level=cfg.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = database or Database(cfg.database_url)
        if cfg.auto_create_tables:
            db.create_all()
        app.state.db = db
        app.state.blobs = blobs or make_blob_store(cfg)
        logger.info("BusBuzz API started")
        try:
            yield
        finally:
            db.dispose()

    app = FastAPI(title="BusBuzz API", lifespan=lifespan)
    app.state.settings = cfg
    limiter.enabled = cfg.rate_limit_enabled
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    register_error_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins_list(cfg),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    @app.get("/health")
    def health():
        return {"ok": True}

    app.include_router(auth.router)
    app.include_router(reports.router)
    app.include_router(attachments.router)
    app.include_router(routes.router)
    app.include_router(buses.router)
    app.include_router(users.router)
    return app


app = create_app()
