"""
Shared fixtures for the movie reviews tests.

Provides in-memory stores behind a fake database handle, sample movies,
and an authenticated FastAPI test client.
"""

import pytest
from typing import Dict, List, Optional

from beanie import PydanticObjectId
from fastapi.testclient import TestClient

from moviereviews.config import Settings
from moviereviews.exceptions import ConflictError, StorageError
from moviereviews.OAuth2 import create_access_token
from moviereviews.schemas import MovieRecord, ReviewRecord, UserRecord
from moviereviews.utils import verify


# =============================================================================
# IN-MEMORY STORES
# =============================================================================

class InMemoryCredentialStore:
    def __init__(self):
        self.users: Dict[str, UserRecord] = {}

    async def create(self, name, username, password_hash) -> UserRecord:
        if username in self.users:
            raise ConflictError("A user with that username already exists.")
        user = UserRecord(id=PydanticObjectId(), name=name, username=username, password=password_hash)
        self.users[username] = user
        return user

    async def find_by_username(self, username) -> Optional[UserRecord]:
        return self.users.get(username)

    def verify_password(self, user, password) -> bool:
        return verify(password, user.password)


class InMemoryReviewStore:
    def __init__(self):
        self.reviews: Dict[PydanticObjectId, ReviewRecord] = {}
        self.fail_writes = False

    async def create(self, movie_id, username, text, rating) -> ReviewRecord:
        if self.fail_writes:
            raise StorageError("Failed to create review")
        review = ReviewRecord(
            id=PydanticObjectId(), movie_id=movie_id, username=username, text=text, rating=rating
        )
        self.reviews[review.id] = review
        return review

    async def list_all(self) -> List[ReviewRecord]:
        return list(self.reviews.values())

    async def list_for_movie(self, movie_id) -> List[ReviewRecord]:
        return [r for r in self.reviews.values() if r.movie_id == movie_id]

    async def delete(self, review_id) -> bool:
        return self.reviews.pop(review_id, None) is not None


class InMemoryMovieStore:
    def __init__(self, reviews: InMemoryReviewStore):
        self.movies: Dict[PydanticObjectId, MovieRecord] = {}
        self.review_store = reviews

    def add(self, title, release_date="2000", genre="Drama", actors=None) -> MovieRecord:
        movie = MovieRecord(
            id=PydanticObjectId(),
            title=title,
            release_date=release_date,
            genre=genre,
            actors=actors or ["Actor One", "Actor Two", "Actor Three"],
        )
        self.movies[movie.id] = movie
        return movie

    async def list_all(self) -> List[MovieRecord]:
        return list(self.movies.values())

    async def get(self, movie_id) -> Optional[MovieRecord]:
        return self.movies.get(movie_id)

    async def get_many(self, movie_ids) -> List[MovieRecord]:
        return [self.movies[i] for i in set(movie_ids) if i in self.movies]

    async def list_joined(self, movie_id=None):
        movies = [m for m in self.movies.values() if movie_id is None or m.id == movie_id]
        return [(m, await self.review_store.list_for_movie(m.id)) for m in movies]


class FakeDatabase:
    """Stands in for `moviereviews.database.Database`."""

    def __init__(self):
        self.users = InMemoryCredentialStore()
        self.reviews = InMemoryReviewStore()
        self.movies = InMemoryMovieStore(self.reviews)
        self.connected = False

    async def connect(self):
        self.connected = True

    async def close(self):
        self.connected = False


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def settings():
    return Settings(
        DATABASE_URL="mongodb://localhost:27017",
        DATABASE_NAME="movies_test",
        SECRET_KEY="test-secret-key",
        _env_file=None,
    )


@pytest.fixture
def db():
    """Fresh fake database for each test."""
    return FakeDatabase()


@pytest.fixture
def movies(db):
    """Three sample movies, in insertion order."""
    return [
        db.movies.add("Alice in Wonderland", "2010", "Fantasy", ["Mia Wasikowska", "Johnny Depp"]),
        db.movies.add("Blade Runner", "1982", "Science Fiction", ["Harrison Ford", "Rutger Hauer"]),
        db.movies.add("Casablanca", "1942", "Drama", ["Humphrey Bogart", "Ingrid Bergman"]),
    ]


def make_client(settings, db):
    from moviereviews.main import create_app

    return TestClient(create_app(settings=settings, database=db), raise_server_exceptions=False)


@pytest.fixture
def api_client(settings, db):
    """FastAPI test client over the fake database."""
    with make_client(settings, db) as client:
        yield client


@pytest.fixture
def auth_headers(settings):
    token = create_access_token({"id": str(PydanticObjectId()), "username": "tester"}, settings)
    return {"Authorization": f"JWT {token}"}
