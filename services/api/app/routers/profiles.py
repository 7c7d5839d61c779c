"""
Profile endpoints (communities, venues, businesses, …):
  GET    /api/profiles          — list, optionally filtered by ?type=
  GET    /api/profiles/{key}    — fetch by id, falling back to slug
  POST   /api/profiles          — create
  PUT    /api/profiles/{id}     — update descriptive fields
  DELETE /api/profiles/{id}     — delete

Counters (followersCount, likesCount, reviewsCount, rating, …) are never
accepted here; the graph service owns them.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.dependencies import Page, get_graph_service, get_uow
from app.exceptions import DuplicateEntityError
from app.graph_service import GraphService
from app.repositories import UnitOfWork
from app.schemas import ProfileCreate, ProfileResponse, ProfileType, ProfileUpdate, SuccessResponse

logger = logging.getLogger(__name__)
router = APIRouter()

_REQUIRED_FIELDS = {"name", "slug", "is_verified"}


@router.get("/profiles", response_model=list[ProfileResponse])
async def list_profiles(
    entity_type: Optional[ProfileType] = Query(None, alias="type"),
    page: Page = Depends(),
    uow: UnitOfWork = Depends(get_uow),
):
    return await uow.profiles.list(entity_type, page.limit, page.offset)


@router.get("/profiles/{key}", response_model=ProfileResponse)
async def get_profile(key: str, uow: UnitOfWork = Depends(get_uow)):
    profile = await uow.profiles.get(key) or await uow.profiles.get_by_slug(key)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.post("/profiles", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_profile(body: ProfileCreate, uow: UnitOfWork = Depends(get_uow)):
    if await uow.profiles.get_by_slug(body.slug):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Slug '{body.slug}' already taken",
        )
    if body.owner_id and not await uow.accounts.get(body.owner_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Owner {body.owner_id} not found",
        )
    try:
        async with uow:
            profile = await uow.profiles.add(**body.model_dump())
    except DuplicateEntityError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))

    logger.info("Created %s profile %s (id=%s)", profile.entity_type, profile.slug, profile.id)
    return profile


@router.put("/profiles/{profile_id}", response_model=ProfileResponse)
async def update_profile(
    profile_id: str, body: ProfileUpdate, uow: UnitOfWork = Depends(get_uow)
):
    changes = {
        name: value
        for name, value in body.model_dump(exclude_unset=True).items()
        # NOT NULL columns can't be cleared
        if value is not None or name not in _REQUIRED_FIELDS
    }
    try:
        async with uow:
            profile = await uow.profiles.get(profile_id)
            if not profile:
                raise HTTPException(status_code=404, detail="Profile not found")
            await uow.profiles.update(profile, changes)
    except DuplicateEntityError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    return profile


@router.delete("/profiles/{profile_id}", response_model=SuccessResponse)
async def delete_profile(profile_id: str, graph: GraphService = Depends(get_graph_service)):
    """Delete a profile together with the follows, likes and reviews on it."""
    if not await graph.delete_profile(profile_id):
        raise HTTPException(status_code=404, detail="Profile not found")
    return SuccessResponse(success=True)
