from fastapi import APIRouter, Depends, Query, status
from ..aggregation import ReviewAggregationEngine
from ..dependencies import get_engine
from ..OAuth2 import get_current_user

router = APIRouter(prefix="/movies", tags=["movies"])


@router.get("", status_code=status.HTTP_200_OK)
async def list_movies(
    reviews: bool = Query(False, description="Join reviews and rank by average rating"),
    engine: ReviewAggregationEngine = Depends(get_engine),
    user=Depends(get_current_user),
):
    """List all movies, optionally with their reviews and average rating."""
    movies = await engine.list_movies(include_reviews=reviews)
    return {
        "success": True,
        "movies": [m.model_dump(mode="json", by_alias=True) for m in movies],
    }


@router.get("/{movie_id}", status_code=status.HTTP_200_OK)
async def get_movie(
    movie_id: str,
    reviews: bool = Query(False, description="Join reviews and compute the average rating"),
    engine: ReviewAggregationEngine = Depends(get_engine),
    user=Depends(get_current_user),
):
    movie = await engine.get_movie(movie_id, include_reviews=reviews)
    return {"success": True, "movie": movie.model_dump(mode="json", by_alias=True)}
