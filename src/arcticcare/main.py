"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from arcticcare.ai.router import router as ai_router
from arcticcare.alerts.router import router as alerts_router
from arcticcare.auth.router import router as auth_router
from arcticcare.config import get_settings
from arcticcare.database import close_db, get_session, init_db
from arcticcare.datasets.router import router as datasets_router
from arcticcare.gamification.router import router as gamification_router
from arcticcare.gamification.seed import seed_badges
from arcticcare.health.router import router as health_router
from arcticcare.institutions.router import router as institutions_router
from arcticcare.issues.router import router as issues_router
from arcticcare.middleware import setup_middleware
from arcticcare.redis_client import close_redis, init_redis
from arcticcare.stats.router import router as stats_router
from arcticcare.users.router import router as users_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    if settings.seed_badges_on_startup:
        try:
            async for db in get_session():
                await seed_badges(db)
                break
        except SQLAlchemyError:
            logger.warning("badge_seed_failed", exc_info=True)

    yield

    await close_db()
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="ArcticCare API",
        description="Citizen environmental reporting with points, levels, streaks, badges and rankings",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(issues_router)
    app.include_router(gamification_router)
    app.include_router(stats_router)
    app.include_router(datasets_router)
    app.include_router(alerts_router)
    app.include_router(institutions_router)
    app.include_router(ai_router)

    return app


app = create_app()
