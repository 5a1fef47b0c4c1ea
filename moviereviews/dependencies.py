"""
Dependency injection for the API.

The database handle and settings live on `app.state`; they are created by
the application factory and its lifespan, never at import time.
"""

from fastapi import Depends, Request

from .aggregation import ReviewAggregationEngine
from .config import Settings
from .database import Database


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_credential_store(db: Database = Depends(get_database)):
    return db.users


def get_engine(
    db: Database = Depends(get_database),
    settings: Settings = Depends(get_settings),
) -> ReviewAggregationEngine:
    return ReviewAggregationEngine(
        db.movies,
        db.reviews,
        strict_referential_check=settings.STRICT_REFERENTIAL_CHECK,
    )
