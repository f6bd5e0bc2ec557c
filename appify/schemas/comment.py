"""Pydantic schemas for Comment."""
from datetime import datetime

from pydantic import BaseModel, Field

from appify.schemas.user import UserPublic


class CommentCreate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    content: str = Field(..., min_length=1)


class CommentResponse(BaseModel):
    id: int
    user_id: int
    post_id: int
    parent_id: int | None = None
    content: str
    likes_count: int = 0
    created_at: datetime
    updated_at: datetime | None = None
    user: UserPublic | None = None
    is_liked: bool = False

    model_config = {"from_attributes": True}


class CommentNode(CommentResponse):
    """Comment with its nested replies, as returned by the thread listing."""

    depth: int = 0
    replies: list["CommentNode"] = Field(default_factory=list)


class CommentPage(BaseModel):
    comments: list[CommentNode]
    total: int
    limit: int
    offset: int


CommentNode.model_rebuild()
