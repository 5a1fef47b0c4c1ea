"""
MongoDB store tests.

The beanie query methods are replaced with stubs, so these check how the
stores build queries and translate driver results and failures.
"""

import asyncio

import pytest
from beanie import PydanticObjectId
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from moviereviews.exceptions import StorageError
from moviereviews.models import Movie, Review
from moviereviews.stores import MovieStore, ReviewStore, storage_errors


def run(coro):
    return asyncio.run(coro)


class StubCursor:
    def __init__(self, rows=None, error=None):
        self.rows = rows or []
        self.error = error

    async def to_list(self):
        if self.error:
            raise self.error
        return self.rows


class TestStorageErrors:
    def test_driver_failure_becomes_storage_error(self):
        with pytest.raises(StorageError) as exc_info:
            with storage_errors("list movies"):
                raise ServerSelectionTimeoutError("no servers")

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Failed to list movies"

    def test_duplicate_key_passes_through(self):
        with pytest.raises(DuplicateKeyError):
            with storage_errors("create user"):
                raise DuplicateKeyError("E11000 duplicate key")


class TestMovieStoreJoin:
    def test_pipeline_and_records(self, monkeypatch):
        movie_id = PydanticObjectId()
        review_id = PydanticObjectId()
        captured = {}

        def aggregate(pipeline):
            captured["pipeline"] = pipeline
            return StubCursor(
                [
                    {
                        "_id": movie_id,
                        "title": "Alice in Wonderland",
                        "release_date": "2010",
                        "genre": "Fantasy",
                        "actors": ["Mia Wasikowska"],
                        "reviews": [
                            {
                                "_id": review_id,
                                "movie_id": movie_id,
                                "username": "alice",
                                "review": "curiouser",
                                "rating": 4,
                            }
                        ],
                    }
                ]
            )

        monkeypatch.setattr(Movie, "aggregate", aggregate)

        joined = run(MovieStore().list_joined(movie_id))

        assert captured["pipeline"] == [
            {"$match": {"_id": movie_id}},
            {
                "$lookup": {
                    "from": "reviews",
                    "localField": "_id",
                    "foreignField": "movie_id",
                    "as": "reviews",
                }
            },
        ]
        movie, reviews = joined[0]
        assert movie.id == movie_id
        assert movie.release_date == "2010"
        assert reviews[0].id == review_id
        assert reviews[0].text == "curiouser"

    def test_unfiltered_pipeline_has_no_match(self, monkeypatch):
        captured = {}

        def aggregate(pipeline):
            captured["pipeline"] = pipeline
            return StubCursor([])

        monkeypatch.setattr(Movie, "aggregate", aggregate)

        assert run(MovieStore().list_joined()) == []
        assert [list(stage) for stage in captured["pipeline"]] == [["$lookup"]]

    def test_aggregation_failure(self, monkeypatch):
        monkeypatch.setattr(
            Movie, "aggregate", lambda pipeline: StubCursor(error=ServerSelectionTimeoutError("down"))
        )

        with pytest.raises(StorageError):
            run(MovieStore().list_joined())

    def test_get_many_skips_query_for_no_ids(self):
        assert run(MovieStore().get_many([])) == []


class TestReviewStoreDelete:
    def test_missing_review_returns_false(self, monkeypatch):
        async def get(document_id):
            return None

        monkeypatch.setattr(Review, "get", get)

        assert run(ReviewStore().delete(PydanticObjectId())) is False
