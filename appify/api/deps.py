"""API dependencies: auth, db session."""
import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from appify.db.session import get_db
from appify.models.post import Post
from appify.models.user import User
from appify.core.security import decode_token
from appify.services.auth_service import get_user_by_id
from appify.services.post_service import can_access_post, get_post

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

__all__ = ["get_db", "get_current_user", "load_accessible_post"]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    if not credentials:
        raise _unauthorized("No token provided")
    payload = decode_token(credentials.credentials)
    if not payload or payload.get("type") != "access":
        logger.info("Rejected invalid or expired access token")
        raise _unauthorized("Invalid or expired token")
    sub = payload.get("sub")
    if not sub or not str(sub).isdigit():
        raise _unauthorized("Invalid or expired token")
    user = await get_user_by_id(db, int(sub))
    if user is None:
        raise _unauthorized("User not found")
    return user


async def load_accessible_post(db: AsyncSession, post_id: int, user: User) -> Post:
    """Fetch a post the user may see: 404 when missing, 403 when private to someone else."""
    post = await get_post(db, post_id)
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    if not can_access_post(post, user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You do not have access to this post")
    return post
