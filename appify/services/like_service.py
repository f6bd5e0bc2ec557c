"""Like toggling for posts and comments, and "who liked" listings.

A toggle is one existence check followed by either delete + decrement or
insert + increment, all in the caller's transaction. Counters are updated in
SQL (``col = col + 1``) so concurrent toggles never overwrite each other's
increments; the unique constraint on (user, target) turns a concurrent double
insert into an IntegrityError for the caller to handle.
"""
import logging

from sqlalchemy import delete, desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from appify.db.counters import decremented, incremented
from appify.models.comment import Comment
from appify.models.engagement import CommentLike, Like
from appify.models.post import Post
from appify.schemas.post import LikeResponse
from appify.services.post_service import user_to_public

logger = logging.getLogger(__name__)


async def toggle_post_like(db: AsyncSession, post_id: int, user_id: int) -> tuple[bool, int]:
    """Flip the user's like on a post. Returns (liked, likes_count) after the flip."""
    existing = await db.execute(
        select(Like.id).where(Like.user_id == user_id, Like.post_id == post_id)
    )
    if existing.scalar_one_or_none() is not None:
        await db.execute(delete(Like).where(Like.user_id == user_id, Like.post_id == post_id))
        await db.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(likes_count=decremented(Post.likes_count))
            .execution_options(synchronize_session=False)
        )
        liked = False
    else:
        db.add(Like(user_id=user_id, post_id=post_id))
        await db.flush()
        await db.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(likes_count=incremented(Post.likes_count))
            .execution_options(synchronize_session=False)
        )
        liked = True

    likes_count = await db.scalar(select(Post.likes_count).where(Post.id == post_id))
    logger.info("User %s %s post %s", user_id, "liked" if liked else "unliked", post_id)
    return liked, likes_count or 0


async def toggle_comment_like(db: AsyncSession, comment_id: int, user_id: int) -> tuple[bool, int]:
    """Flip the user's like on a comment. Returns (liked, likes_count) after the flip."""
    existing = await db.execute(
        select(CommentLike.id).where(CommentLike.user_id == user_id, CommentLike.comment_id == comment_id)
    )
    if existing.scalar_one_or_none() is not None:
        await db.execute(
            delete(CommentLike).where(CommentLike.user_id == user_id, CommentLike.comment_id == comment_id)
        )
        await db.execute(
            update(Comment)
            .where(Comment.id == comment_id)
            .values(likes_count=decremented(Comment.likes_count))
            .execution_options(synchronize_session=False)
        )
        liked = False
    else:
        db.add(CommentLike(user_id=user_id, comment_id=comment_id))
        await db.flush()
        await db.execute(
            update(Comment)
            .where(Comment.id == comment_id)
            .values(likes_count=incremented(Comment.likes_count))
            .execution_options(synchronize_session=False)
        )
        liked = True

    likes_count = await db.scalar(select(Comment.likes_count).where(Comment.id == comment_id))
    logger.info("User %s %s comment %s", user_id, "liked" if liked else "unliked", comment_id)
    return liked, likes_count or 0


async def get_post_likes(db: AsyncSession, post_id: int, limit: int = 20, offset: int = 0) -> list[LikeResponse]:
    result = await db.execute(
        select(Like)
        .where(Like.post_id == post_id)
        .order_by(desc(Like.created_at), desc(Like.id))
        .offset(offset)
        .limit(limit)
        .options(selectinload(Like.user))
    )
    return [
        LikeResponse(
            id=like.id,
            user_id=like.user_id,
            target_id=like.post_id,
            created_at=like.created_at,
            user=user_to_public(like.user),
        )
        for like in result.scalars().all()
    ]


async def get_comment_likes(db: AsyncSession, comment_id: int, limit: int = 20, offset: int = 0) -> list[LikeResponse]:
    result = await db.execute(
        select(CommentLike)
        .where(CommentLike.comment_id == comment_id)
        .order_by(desc(CommentLike.created_at), desc(CommentLike.id))
        .offset(offset)
        .limit(limit)
        .options(selectinload(CommentLike.user))
    )
    return [
        LikeResponse(
            id=like.id,
            user_id=like.user_id,
            target_id=like.comment_id,
            created_at=like.created_at,
            user=user_to_public(like.user),
        )
        for like in result.scalars().all()
    ]
