from fastapi import APIRouter, Depends, status
from ..aggregation import ReviewAggregationEngine
from ..dependencies import get_engine
from ..OAuth2 import get_current_user
from ..schemas import ReviewCreate

router = APIRouter(prefix="/review", tags=["review"])


@router.get("", status_code=status.HTTP_200_OK)
async def get_reviews(
    engine: ReviewAggregationEngine = Depends(get_engine),
    user=Depends(get_current_user),
):
    """All reviews, each with its movie expanded in place of `movieId`."""
    reviews = await engine.list_reviews()
    return [r.model_dump(mode="json", by_alias=True) for r in reviews]


@router.post("", status_code=status.HTTP_201_CREATED)
async def add_review(
    review: ReviewCreate,
    engine: ReviewAggregationEngine = Depends(get_engine),
    user=Depends(get_current_user),
):
    await engine.create_review(review.movie_id, review.username, review.text, review.rating)
    return {"message": "Review created!"}


@router.delete("/{review_id}", status_code=status.HTTP_200_OK)
async def delete_review(
    review_id: str,
    engine: ReviewAggregationEngine = Depends(get_engine),
    user=Depends(get_current_user),
):
    await engine.delete_review(review_id)
    return {"message": "Review deleted"}
