from __future__ import annotations

import logging
import os

from fastapi import FastAPI

from app.core.errors import register_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import RequestContextMiddleware
from app.db.base import Base
from app.db.session import engine

# Register models
from app.db import models  # noqa: F401

from services.catalog.api import router as catalog_router
from services.manufacturing.api import router as manufacturing_router

DB_CREATE_ALL = os.getenv("DB_CREATE_ALL", "1") == "1"

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Manufacturing: BOMs + Production Orders")
app.add_middleware(RequestContextMiddleware)
register_exception_handlers(app)

app.include_router(catalog_router)
app.include_router(manufacturing_router)

@app.on_event("startup")
async def _startup():
    # Dev-friendly schema creation (migrations are available for real upgrades)
    if DB_CREATE_ALL:
        Base.metadata.create_all(bind=engine)
        logger.info("schema ensured on %s", engine.url.render_as_string(hide_password=True))

@app.get("/health")
def health():
    return {"ok": True}
