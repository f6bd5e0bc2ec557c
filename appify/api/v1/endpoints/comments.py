"""Comment endpoints addressed by comment id: replies, delete, likes."""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from appify.api.deps import get_db, get_current_user, load_accessible_post
from appify.models.comment import Comment
from appify.models.user import User
from appify.schemas.comment import CommentCreate, CommentResponse
from appify.schemas.post import LikePage, LikeToggleResponse
from appify.services.comment_service import comment_to_response, create_comment, delete_comment, get_comment
from appify.services.like_service import get_comment_likes, toggle_comment_like

router = APIRouter(prefix="/comments", tags=["comments"])


async def _load_accessible_comment(db: AsyncSession, comment_id: int, user: User) -> Comment:
    comment = await get_comment(db, comment_id)
    if not comment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    await load_accessible_post(db, comment.post_id, user)
    return comment


@router.post("/{comment_id}/replies", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_reply(
    comment_id: int,
    data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    parent = await _load_accessible_comment(db, comment_id, current_user)
    reply = await create_comment(
        db,
        user_id=current_user.id,
        post_id=parent.post_id,
        content=data.content,
        parent_id=parent.id,
    )
    await db.commit()
    reply.user = current_user
    return comment_to_response(reply, is_liked=False)


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment_endpoint(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = await get_comment(db, comment_id)
    if not comment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    if comment.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only delete your own comments")
    await delete_comment(db, comment)
    await db.commit()
    return None


@router.post("/{comment_id}/toggle-like", response_model=LikeToggleResponse)
async def toggle_comment_like_endpoint(
    comment_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await _load_accessible_comment(db, comment_id, current_user)
    try:
        liked, likes_count = await toggle_comment_like(db, comment_id, current_user.id)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Like is already being recorded")
    return LikeToggleResponse(
        message="Comment liked" if liked else "Comment unliked",
        liked=liked,
        likes_count=likes_count,
    )


@router.get("/{comment_id}/likes", response_model=LikePage)
async def list_comment_likes(
    comment_id: int,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = await _load_accessible_comment(db, comment_id, current_user)
    likes = await get_comment_likes(db, comment_id, limit=limit, offset=offset)
    return LikePage(likes=likes, total=comment.likes_count or 0, limit=limit, offset=offset)
