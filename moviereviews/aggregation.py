"""
Review aggregation: joins reviews into movies and ranks them by rating.

The join itself is a single read against the movie store; averaging and
ordering happen here so every store implementation ranks movies the same way.
"""

import logging
from typing import List, Optional, Sequence, Union

from beanie import PydanticObjectId
from bson.errors import InvalidId
from pydantic import ValidationError as SchemaValidationError

from .exceptions import NotFoundError, ValidationError
from .schemas import (
    MovieRecord,
    MovieWithReviews,
    ReviewCreate,
    ReviewRecord,
    ReviewWithMovie,
)

logger = logging.getLogger("moviereviews.aggregation")


def average_rating(reviews: Sequence[ReviewRecord]) -> Optional[float]:
    """Mean rating of `reviews`, or None when there are none."""
    if not reviews:
        return None
    return sum(r.rating for r in reviews) / len(reviews)


def rank_movies(movies: Sequence[MovieWithReviews]) -> List[MovieWithReviews]:
    """Highest average first, then title; unrated movies go last."""
    return sorted(
        movies,
        key=lambda m: (
            m.average_rating is None,
            -(m.average_rating or 0.0),
            m.title,
        ),
    )


def with_reviews(movie: MovieRecord, reviews: Sequence[ReviewRecord]) -> MovieWithReviews:
    return MovieWithReviews(
        **movie.model_dump(),
        reviews=list(reviews),
        average_rating=average_rating(reviews),
    )


def parse_object_id(value: Union[str, PydanticObjectId], resource: str) -> PydanticObjectId:
    """Malformed identifiers can never match a record, so they are reported as missing."""
    if isinstance(value, PydanticObjectId):
        return value
    if not value:
        raise NotFoundError(resource, value)
    try:
        return PydanticObjectId(value)
    except (InvalidId, TypeError):
        raise NotFoundError(resource, value)


class ReviewAggregationEngine:
    def __init__(self, movies, reviews, strict_referential_check: bool = True):
        self.movies = movies
        self.reviews = reviews
        self.strict_referential_check = strict_referential_check

    async def list_movies_with_reviews(
        self, movie_id: Optional[Union[str, PydanticObjectId]] = None
    ) -> List[MovieWithReviews]:
        oid = parse_object_id(movie_id, "Movie") if movie_id is not None else None

        joined = await self.movies.list_joined(oid)
        if oid is not None and not joined:
            raise NotFoundError("Movie", movie_id)

        return rank_movies([with_reviews(movie, reviews) for movie, reviews in joined])

    async def list_movies(
        self, include_reviews: bool = False
    ) -> Union[List[MovieRecord], List[MovieWithReviews]]:
        if include_reviews:
            return await self.list_movies_with_reviews()
        return await self.movies.list_all()

    async def get_movie(
        self, movie_id: Union[str, PydanticObjectId], include_reviews: bool = False
    ) -> Union[MovieRecord, MovieWithReviews]:
        if include_reviews:
            return (await self.list_movies_with_reviews(movie_id))[0]

        movie = await self.movies.get(parse_object_id(movie_id, "Movie"))
        if movie is None:
            raise NotFoundError("Movie", movie_id)
        return movie

    async def list_reviews(self) -> List[ReviewWithMovie]:
        reviews = await self.reviews.list_all()
        movies = await self.movies.get_many(r.movie_id for r in reviews)
        by_id = {m.id: m for m in movies}

        return [
            ReviewWithMovie(
                id=r.id,
                movie=by_id.get(r.movie_id),
                username=r.username,
                text=r.text,
                rating=r.rating,
            )
            for r in reviews
        ]

    async def create_review(self, movie_id, username, text, rating) -> ReviewRecord:
        try:
            payload = ReviewCreate(movie_id=movie_id, username=username, text=text, rating=rating)
        except SchemaValidationError as e:
            raise ValidationError(
                "All fields are required and must be valid",
                details={"errors": [err["msg"] for err in e.errors()]},
            )

        if self.strict_referential_check:
            movie = await self.movies.get(payload.movie_id)
            if movie is None:
                raise NotFoundError("Movie", payload.movie_id)

        review = await self.reviews.create(
            payload.movie_id, payload.username, payload.text, payload.rating
        )
        logger.info(f"Review {review.id} created for movie {review.movie_id} by {review.username}")
        return review

    async def delete_review(self, review_id: Union[str, PydanticObjectId]) -> None:
        oid = parse_object_id(review_id, "Review")
        if not await self.reviews.delete(oid):
            raise NotFoundError("Review", review_id)
        logger.info(f"Review {oid} deleted")
