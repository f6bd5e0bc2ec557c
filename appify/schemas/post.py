"""Pydantic schemas for Post and likes."""
from datetime import datetime

from pydantic import BaseModel, Field

from appify.schemas.user import UserPublic


class PostResponse(BaseModel):
    id: int
    user_id: int
    content: str | None = None
    image_url: str | None = None
    is_public: bool
    likes_count: int = 0
    comments_count: int = 0
    created_at: datetime
    updated_at: datetime | None = None
    user: UserPublic | None = None
    is_liked: bool = False

    model_config = {"from_attributes": True}


class LikeToggleResponse(BaseModel):
    message: str
    liked: bool
    likes_count: int = Field(..., alias="likesCount")

    model_config = {"populate_by_name": True}


class LikeResponse(BaseModel):
    """One row of a "who liked" listing; target_id is the post or comment id."""

    id: int
    user_id: int
    target_id: int
    created_at: datetime
    user: UserPublic


class LikePage(BaseModel):
    likes: list[LikeResponse]
    total: int
    limit: int
    offset: int
