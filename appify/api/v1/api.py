"""V1 API router aggregation."""
from fastapi import APIRouter

from appify.api.v1.endpoints import auth, posts, comments, users

api_router = APIRouter()
api_router.include_router(auth.router)
api_router.include_router(posts.router)
api_router.include_router(comments.router)
api_router.include_router(users.router)
