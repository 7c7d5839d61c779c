"""
Review endpoints:
  GET    /api/reviews/{target_id} — reviews of a profile, newest first
  POST   /api/reviews             — submit a review (recomputes the rating)
  DELETE /api/reviews/{review_id} — delete a review (recomputes the rating)
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.dependencies import Page, get_graph_service
from app.exceptions import EntityNotFoundError, InvalidReviewError
from app.graph_service import GraphService
from app.schemas import ReviewCreate, ReviewResponse, SuccessResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/reviews/{target_id}", response_model=list[ReviewResponse])
async def list_reviews(
    target_id: str,
    page: Page = Depends(),
    graph: GraphService = Depends(get_graph_service),
):
    return await graph.get_reviews(target_id, page.limit, page.offset)


@router.post("/reviews", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
async def create_review(body: ReviewCreate, graph: GraphService = Depends(get_graph_service)):
    try:
        return await graph.create_review(**body.model_dump())
    except (InvalidReviewError, EntityNotFoundError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.delete("/reviews/{review_id}", response_model=SuccessResponse)
async def delete_review(review_id: str, graph: GraphService = Depends(get_graph_service)):
    if not await graph.delete_review(review_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Review not found")
    return SuccessResponse(success=True)
