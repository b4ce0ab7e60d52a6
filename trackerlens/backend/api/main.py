"""
api/main.py

FastAPI app factory. The repository is wired once at startup via
set_repository(); routes resolve it through their _get_repo dependency,
which tests replace with app.dependency_overrides.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config import settings
from ..storage.repository import EntityRepository
from .routes import analytics as analytics_router
from .routes import trackers as trackers_router

logger = logging.getLogger(__name__)

_repository: EntityRepository | None = None


def set_repository(repo: EntityRepository | None) -> None:
    global _repository
    _repository = repo


def get_repository() -> EntityRepository:
    if _repository is None:
        raise RuntimeError("Repository not initialised — call set_repository() first")
    return _repository


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("FastAPI startup")
        yield
        logger.info("FastAPI shutdown")

    app = FastAPI(
        title="TrackerLens — Tracker Analytics",
        version="1.0.0",
        description="Tracker sightings, trends and cross-site behavioural change feed",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    app.include_router(analytics_router.router, prefix="/api")
    app.include_router(trackers_router.router,  prefix="/api")

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    return app
