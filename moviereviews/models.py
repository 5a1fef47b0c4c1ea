from beanie import Document, Indexed, PydanticObjectId
from pydantic import Field
from datetime import datetime, timezone
from typing import List, Optional

REVIEWS_COLLECTION = "reviews"


class User(Document):
    name: Optional[str] = None
    username: Indexed(str, unique=True)
    password: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    class Settings:
        name = "users"


class Movie(Document):
    title: str
    release_date: Optional[str] = None
    genre: Optional[str] = None
    actors: List[str] = Field(default_factory=list)

    class Settings:
        name = "movies"


class Review(Document):
    movie_id: Indexed(PydanticObjectId)
    username: str
    review: str
    rating: int = Field(..., ge=0, le=5)

    class Settings:
        name = REVIEWS_COLLECTION


DOCUMENT_MODELS = [User, Movie, Review]
