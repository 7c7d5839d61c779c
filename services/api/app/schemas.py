"""
Pydantic request / response schemas for the API layer.
Kept separate from ORM models to avoid coupling transport to storage.

Wire format is camelCase (followerId, targetType, followersCount, …);
snake_case field names are accepted on input as well. Counter fields only
appear on response models.
"""
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.targets import TargetType

ProfileType = Literal[
    "community", "organisation", "venue", "business", "council", "government", "artist"
]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ──────────────────────────── Accounts ────────────────────────────────────

class AccountCreate(CamelModel):
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=6, max_length=72)
    display_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None


class AccountResponse(CamelModel):
    id: str
    username: str
    display_name: Optional[str]
    email: Optional[str]
    bio: Optional[str]
    avatar_url: Optional[str]
    city: Optional[str]
    country: Optional[str]
    followers_count: int
    following_count: int
    likes_count: int
    created_at: datetime


# ──────────────────────────── Profiles ────────────────────────────────────

class ProfileCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    slug: str = Field(..., min_length=1, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    entity_type: ProfileType
    description: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    address: Optional[str] = None
    category: Optional[str] = None
    is_verified: bool = False
    owner_id: Optional[str] = None


class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, min_length=1, max_length=255, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
    description: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    address: Optional[str] = None
    category: Optional[str] = None
    is_verified: Optional[bool] = None


class ProfileResponse(CamelModel):
    id: str
    name: str
    slug: str
    entity_type: str
    description: Optional[str]
    bio: Optional[str]
    avatar_url: Optional[str]
    email: Optional[str]
    phone: Optional[str]
    website: Optional[str]
    city: Optional[str]
    country: Optional[str]
    address: Optional[str]
    category: Optional[str]
    is_verified: bool
    owner_id: Optional[str]
    followers_count: int
    likes_count: int
    members_count: int
    reviews_count: int
    rating: float
    created_at: datetime


# ──────────────────────────── Follows ─────────────────────────────────────

class FollowRequest(CamelModel):
    follower_id: str = Field(..., min_length=1)
    target_id: str = Field(..., min_length=1)
    target_type: TargetType


class UnfollowRequest(CamelModel):
    follower_id: str = Field(..., min_length=1)
    target_id: str = Field(..., min_length=1)


class FollowResponse(CamelModel):
    id: str
    follower_id: str
    target_id: str
    target_type: str
    created_at: datetime


class IsFollowingResponse(CamelModel):
    is_following: bool


# ──────────────────────────── Likes ───────────────────────────────────────

class LikeRequest(CamelModel):
    user_id: str = Field(..., min_length=1)
    target_id: str = Field(..., min_length=1)
    target_type: TargetType


class UnlikeRequest(CamelModel):
    user_id: str = Field(..., min_length=1)
    target_id: str = Field(..., min_length=1)


class LikeResponse(CamelModel):
    id: str
    user_id: str
    target_id: str
    target_type: str
    created_at: datetime


class IsLikedResponse(CamelModel):
    is_liked: bool


# ──────────────────────────── Reviews ─────────────────────────────────────

class ReviewCreate(CamelModel):
    user_id: str = Field(..., min_length=1)
    target_id: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=5, strict=True)
    comment: Optional[str] = Field(None, max_length=5000)
    # Author display fields; filled from the account when omitted
    user_name: Optional[str] = None
    user_avatar_url: Optional[str] = None


class ReviewResponse(CamelModel):
    id: str
    user_id: str
    target_id: str
    rating: int
    comment: Optional[str]
    user_name: Optional[str]
    user_avatar_url: Optional[str]
    created_at: datetime


# ──────────────────────────── Common ──────────────────────────────────────

class SuccessResponse(CamelModel):
    success: bool
