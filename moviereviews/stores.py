"""
MongoDB-backed stores for users, movies and reviews.

Each store converts beanie documents into the plain records from
`schemas` so the rest of the application never touches the ODM. Driver
failures surface as `StorageError`; a duplicate username as `ConflictError`.
"""

import logging
from contextlib import contextmanager
from typing import Iterable, List, Optional, Sequence, Tuple

from beanie import PydanticObjectId
from beanie.operators import In
from pymongo.errors import DuplicateKeyError, PyMongoError

from .exceptions import ConflictError, StorageError
from .models import REVIEWS_COLLECTION, Movie, Review, User
from .schemas import MovieRecord, MovieSeed, ReviewRecord, UserRecord
from .utils import verify

logger = logging.getLogger("moviereviews.stores")


@contextmanager
def storage_errors(action: str):
    try:
        yield
    except DuplicateKeyError:
        raise
    except PyMongoError as e:
        logger.error(f"Storage failure while trying to {action}: {e}")
        raise StorageError(f"Failed to {action}") from e


def _user_record(user: User) -> UserRecord:
    return UserRecord(id=user.id, name=user.name, username=user.username, password=user.password)


def _movie_record(movie: Movie) -> MovieRecord:
    return MovieRecord(
        id=movie.id,
        title=movie.title,
        release_date=movie.release_date,
        genre=movie.genre,
        actors=movie.actors,
    )


def _review_record(review: Review) -> ReviewRecord:
    return ReviewRecord(
        id=review.id,
        movie_id=review.movie_id,
        username=review.username,
        text=review.review,
        rating=review.rating,
    )


class CredentialStore:
    async def create(self, name: Optional[str], username: str, password_hash: str) -> UserRecord:
        user = User(name=name, username=username, password=password_hash)
        try:
            with storage_errors("create user"):
                await user.insert()
        except DuplicateKeyError:
            raise ConflictError("A user with that username already exists.")
        return _user_record(user)

    async def find_by_username(self, username: str) -> Optional[UserRecord]:
        with storage_errors("look up user"):
            user = await User.find_one(User.username == username)
        return _user_record(user) if user else None

    def verify_password(self, user: UserRecord, password: str) -> bool:
        return verify(password, user.password)


class MovieStore:
    async def list_all(self) -> List[MovieRecord]:
        with storage_errors("list movies"):
            movies = await Movie.find_all().to_list()
        return [_movie_record(m) for m in movies]

    async def get(self, movie_id: PydanticObjectId) -> Optional[MovieRecord]:
        with storage_errors("load movie"):
            movie = await Movie.get(movie_id)
        return _movie_record(movie) if movie else None

    async def get_many(self, movie_ids: Iterable[PydanticObjectId]) -> List[MovieRecord]:
        ids = list(set(movie_ids))
        if not ids:
            return []
        with storage_errors("load movies"):
            movies = await Movie.find(In(Movie.id, ids)).to_list()
        return [_movie_record(m) for m in movies]

    async def list_joined(
        self, movie_id: Optional[PydanticObjectId] = None
    ) -> List[Tuple[MovieRecord, List[ReviewRecord]]]:
        """Left-join reviews into movies in a single aggregation."""
        pipeline = []
        if movie_id is not None:
            pipeline.append({"$match": {"_id": movie_id}})
        pipeline.append(
            {
                "$lookup": {
                    "from": REVIEWS_COLLECTION,
                    "localField": "_id",
                    "foreignField": "movie_id",
                    "as": "reviews",
                }
            }
        )

        with storage_errors("aggregate movies with reviews"):
            rows = await Movie.aggregate(pipeline).to_list()

        joined = []
        for row in rows:
            reviews = [ReviewRecord.model_validate(r) for r in row.pop("reviews", [])]
            joined.append((MovieRecord.model_validate(row), reviews))
        return joined

    async def insert_many(self, movies: Sequence[MovieSeed]) -> int:
        if not movies:
            return 0
        documents = [Movie(**m.model_dump()) for m in movies]
        with storage_errors("insert movies"):
            await Movie.insert_many(documents)
        return len(documents)


class ReviewStore:
    async def create(
        self, movie_id: PydanticObjectId, username: str, text: str, rating: int
    ) -> ReviewRecord:
        review = Review(movie_id=movie_id, username=username, review=text, rating=rating)
        with storage_errors("create review"):
            await review.insert()
        return _review_record(review)

    async def list_all(self) -> List[ReviewRecord]:
        with storage_errors("list reviews"):
            reviews = await Review.find_all().to_list()
        return [_review_record(r) for r in reviews]

    async def list_for_movie(self, movie_id: PydanticObjectId) -> List[ReviewRecord]:
        with storage_errors("list reviews for movie"):
            reviews = await Review.find(Review.movie_id == movie_id).to_list()
        return [_review_record(r) for r in reviews]

    async def delete(self, review_id: PydanticObjectId) -> bool:
        with storage_errors("delete review"):
            review = await Review.get(review_id)
            if not review:
                return False
            await review.delete()
        return True
