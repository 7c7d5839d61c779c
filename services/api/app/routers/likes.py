"""
Like endpoints:
  POST /api/like              — like a user or profile (idempotent)
  POST /api/unlike            — unlike; {success: false} if not liked
  GET  /api/is-liked          — edge existence check
  GET  /api/likes/{target_id} — like edges pointing at a target
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.dependencies import Page, get_graph_service
from app.exceptions import EntityNotFoundError
from app.graph_service import GraphService
from app.schemas import (
    IsLikedResponse,
    LikeRequest,
    LikeResponse,
    SuccessResponse,
    UnlikeRequest,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/like", response_model=LikeResponse)
async def like(body: LikeRequest, graph: GraphService = Depends(get_graph_service)):
    """Like a target — idempotent. Only the target's likesCount moves."""
    try:
        return await graph.like_entity(body.user_id, body.target_id, body.target_type)
    except EntityNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.post("/unlike", response_model=SuccessResponse)
async def unlike(body: UnlikeRequest, graph: GraphService = Depends(get_graph_service)):
    removed = await graph.unlike_entity(body.user_id, body.target_id)
    return SuccessResponse(success=removed)


@router.get("/is-liked", response_model=IsLikedResponse)
async def is_liked(
    user_id: str = Query(..., alias="userId"),
    target_id: str = Query(..., alias="targetId"),
    graph: GraphService = Depends(get_graph_service),
):
    return IsLikedResponse(is_liked=await graph.is_liked(user_id, target_id))


@router.get("/likes/{target_id}", response_model=list[LikeResponse])
async def list_likes(
    target_id: str,
    page: Page = Depends(),
    graph: GraphService = Depends(get_graph_service),
):
    return await graph.get_likes(target_id, page.limit, page.offset)
