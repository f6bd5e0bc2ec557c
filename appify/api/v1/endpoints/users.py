"""User-scoped listings."""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from appify.api.deps import get_db, get_current_user
from appify.models.user import User
from appify.schemas.post import PostResponse
from appify.services.auth_service import get_user_by_id
from appify.services.post_service import get_user_liked_post_ids, get_user_posts_visible, post_to_response

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_id}/posts", response_model=list[PostResponse])
async def list_user_posts(
    user_id: int,
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """A user's posts; private ones are included only when the viewer is that user."""
    if not await get_user_by_id(db, user_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    posts = await get_user_posts_visible(db, user_id, current_user.id, offset=offset, limit=limit)
    liked_ids = await get_user_liked_post_ids(db, current_user.id, [p.id for p in posts])
    return [post_to_response(p, is_liked=p.id in liked_ids) for p in posts]
