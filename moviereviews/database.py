import logging
from typing import Optional

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from .config import Settings
from .models import DOCUMENT_MODELS
from .stores import CredentialStore, MovieStore, ReviewStore

logger = logging.getLogger("moviereviews.database")


class Database:
    """MongoDB connection owned by the application lifespan."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.client: Optional[AsyncIOMotorClient] = None
        self.users = CredentialStore()
        self.movies = MovieStore()
        self.reviews = ReviewStore()

    async def connect(self) -> None:
        self.client = AsyncIOMotorClient(self.settings.DATABASE_URL)
        db = self.client[self.settings.DATABASE_NAME]
        await init_beanie(database=db, document_models=DOCUMENT_MODELS)
        logger.info(f"Connected to MongoDB database '{self.settings.DATABASE_NAME}'")

    async def close(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None
            logger.info("MongoDB connection closed")
