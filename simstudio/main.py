# simstudio/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import is_running_tests, settings
from .core.constants import API_DESCRIPTION, API_PREFIX, API_TITLE, API_VERSION
from .database import Base, SessionLocal, engine
from .errors import register_error_handlers
from .init_db import check_user_roles
from .middleware.prometheus_middleware import PrometheusMiddleware
from .routes import (
    availability,
    bookings,
    coaches,
    health,
    packages,
    schedule,
    user_credits,
    users,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup/shutdown."""
    logger.info(f"{API_TITLE} starting up...")
    logger.info(f"Environment: {settings.environment}, studio timezone: {settings.studio_timezone}")
    if is_running_tests():
        logger.info("Running under pytest (test mode active)")
    else:
        # Tables the hosted data service already owns are left untouched
        import simstudio.models  # noqa: F401

        Base.metadata.create_all(bind=engine)
        with SessionLocal() as db:
            check_user_roles(db, apply=settings.auto_migrate_user_roles)
    logger.info(f"Allowed origins: {settings.allowed_origins}")

    yield

    logger.info(f"{API_TITLE} shutting down...")


app = FastAPI(
    title=API_TITLE,
    description=API_DESCRIPTION,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=app_lifespan,
)

register_error_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)
if settings.metrics_enabled:
    app.add_middleware(PrometheusMiddleware)

api = APIRouter(prefix=API_PREFIX)
api.include_router(bookings.router)
api.include_router(availability.router)
api.include_router(user_credits.router)
api.include_router(packages.router)
api.include_router(schedule.router)
api.include_router(coaches.router)
api.include_router(users.router)
app.include_router(api)

app.include_router(health.router)


@app.get("/")
def read_root() -> dict[str, str]:
    return {"message": f"Welcome to the {API_TITLE}", "version": API_VERSION, "docs": "/docs"}
