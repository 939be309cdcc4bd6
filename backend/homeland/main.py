import logging
from pathlib import Path

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from homeland.core.config import PACKAGE_DIR, get_settings
from homeland.core.logging_config import add_audit_middleware, configure_logging
from homeland.db.base import Base
from homeland.db import models  # noqa: F401  (registers tables on Base.metadata)
from homeland.db.session import engine, get_db
from homeland.api.errors import register_exception_handlers
from homeland.api.routers import (
    auth as auth_router,
    users as users_router,
    properties as properties_router,
    categories as categories_router,
    bookings as bookings_router,
    host as host_router,
    admin as admin_router,
    reviews as reviews_router,
    upload as upload_router,
)

settings = get_settings()
configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger("homeland.main")

app = FastAPI(title=settings.PROJECT_NAME)

# ---------------------------
# CORS
# ---------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.BACKEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

add_audit_middleware(app)
register_exception_handlers(app)

# ---------------------------
# Static files
# ---------------------------
STATIC_DIR = PACKAGE_DIR / "static"
Path(settings.STATIC_UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
STATIC_DIR.mkdir(parents=True, exist_ok=True)

app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")

# ---------------------------
# Startup
# ---------------------------
@app.on_event("startup")
async def on_startup():
    if settings.AUTO_CREATE_TABLES:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    logger.info("%s started", settings.PROJECT_NAME)

# ---------------------------
# Routers
# ---------------------------
app.include_router(auth_router.router, prefix="/api/auth", tags=["auth"])
app.include_router(users_router.router, prefix="/api/users", tags=["users"])
app.include_router(properties_router.router, prefix="/api/properties", tags=["properties"])
app.include_router(categories_router.router, prefix="/api/categories", tags=["categories"])
app.include_router(bookings_router.router, prefix="/api/bookings", tags=["bookings"])
app.include_router(host_router.router, prefix="/api/host", tags=["host"])
app.include_router(admin_router.router, prefix="/api/admin", tags=["admin"])
app.include_router(reviews_router.router, prefix="/api/reviews", tags=["reviews"])
app.include_router(upload_router.router, prefix="/api/upload", tags=["upload"])

# ---------------------------
# Health check
# ---------------------------
@app.get("/ping")
async def ping():
    return {"status": "ok"}


@app.get("/api/health")
async def health(db: AsyncSession = Depends(get_db)):
    try:
        await db.execute(text("SELECT 1"))
        database = "connected"
    except Exception:
        logger.exception("Database health check failed")
        database = "disconnected"
    return {
        "status": "OK" if database == "connected" else "DEGRADED",
        "database": database,
        "service": settings.PROJECT_NAME,
    }

# ---------------------------
# Run
# ---------------------------
if __name__ == "__main__":
    uvicorn.run("homeland.main:app", host="0.0.0.0", port=8000, reload=True)
