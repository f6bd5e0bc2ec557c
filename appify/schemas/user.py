"""Pydantic schemas for User and auth tokens."""
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    model_config = {"str_strip_whitespace": True}

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    registered_at: datetime

    model_config = {"from_attributes": True}


class UserPublic(BaseModel):
    """Author info embedded in posts, comments and like lists."""

    id: int
    first_name: str
    last_name: str

    model_config = {"from_attributes": True}


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserResponse


class TokenRefresh(BaseModel):
    refresh_token: str


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
