"""
Follow endpoints:
  POST /api/follow                — follow a user or profile (idempotent)
  POST /api/unfollow              — unfollow; {success: false} if not following
  GET  /api/followers/{target_id} — follow edges pointing at a target
  GET  /api/following/{user_id}   — follow edges created by a user
  GET  /api/is-following          — edge existence check
  GET  /api/members/{profile_id}  — accounts following a profile
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.dependencies import Page, get_graph_service
from app.exceptions import EntityNotFoundError, SelfRelationshipError
from app.graph_service import GraphService
from app.schemas import (
    AccountResponse,
    FollowRequest,
    FollowResponse,
    IsFollowingResponse,
    SuccessResponse,
    UnfollowRequest,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/follow", response_model=FollowResponse)
async def follow(body: FollowRequest, graph: GraphService = Depends(get_graph_service)):
    """
    Create a follower → target edge.

    Following twice returns the existing edge; counters only move the first
    time. targetType "user" points at an account, any other type at a profile.
    """
    try:
        return await graph.follow(body.follower_id, body.target_id, body.target_type)
    except SelfRelationshipError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except EntityNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


@router.post("/unfollow", response_model=SuccessResponse)
async def unfollow(body: UnfollowRequest, graph: GraphService = Depends(get_graph_service)):
    removed = await graph.unfollow(body.follower_id, body.target_id)
    return SuccessResponse(success=removed)


@router.get("/followers/{target_id}", response_model=list[FollowResponse])
async def list_followers(
    target_id: str,
    page: Page = Depends(),
    graph: GraphService = Depends(get_graph_service),
):
    return await graph.get_followers(target_id, page.limit, page.offset)


@router.get("/following/{user_id}", response_model=list[FollowResponse])
async def list_following(
    user_id: str,
    page: Page = Depends(),
    graph: GraphService = Depends(get_graph_service),
):
    return await graph.get_following(user_id, page.limit, page.offset)


@router.get("/is-following", response_model=IsFollowingResponse)
async def is_following(
    follower_id: str = Query(..., alias="followerId"),
    target_id: str = Query(..., alias="targetId"),
    graph: GraphService = Depends(get_graph_service),
):
    return IsFollowingResponse(is_following=await graph.is_following(follower_id, target_id))


@router.get("/members/{profile_id}", response_model=list[AccountResponse])
async def list_members(profile_id: str, graph: GraphService = Depends(get_graph_service)):
    return await graph.get_members(profile_id)
