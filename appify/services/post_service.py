"""Post business logic: creation, deletion, feed and visibility."""
import logging

from sqlalchemy import delete, desc, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from appify.models.engagement import Like
from appify.models.post import Post
from appify.schemas.post import PostResponse
from appify.schemas.user import UserPublic

logger = logging.getLogger(__name__)


def can_access_post(post: Post, user_id: int | None) -> bool:
    """A post is visible when it is public, or when the viewer owns it."""
    if post.is_public:
        return True
    return user_id is not None and post.user_id == user_id


async def create_post(
    db: AsyncSession,
    user_id: int,
    *,
    content: str | None,
    image_url: str | None,
    is_public: bool,
) -> Post:
    post = Post(
        user_id=user_id,
        content=content,
        image_url=image_url,
        is_public=is_public,
        likes_count=0,
        comments_count=0,
    )
    db.add(post)
    await db.flush()
    await db.refresh(post)
    logger.info("Post %s created by user %s (public=%s)", post.id, user_id, is_public)
    return post


async def get_post(db: AsyncSession, post_id: int) -> Post | None:
    result = await db.execute(
        select(Post).where(Post.id == post_id).options(selectinload(Post.user))
    )
    return result.scalar_one_or_none()


async def delete_post(db: AsyncSession, post: Post) -> None:
    """Delete a post. Comments, likes and comment likes go with it via ON DELETE CASCADE."""
    post_id, owner_id = post.id, post.user_id
    await db.execute(delete(Post).where(Post.id == post_id))
    await db.flush()
    logger.info("Post %s deleted by user %s", post_id, owner_id)


def _visible_to(viewer_id: int | None):
    if viewer_id is None:
        return Post.is_public.is_(True)
    return or_(Post.is_public.is_(True), Post.user_id == viewer_id)


async def get_feed_posts(
    db: AsyncSession,
    viewer_id: int | None,
    offset: int = 0,
    limit: int = 20,
) -> list[Post]:
    """Public posts plus the viewer's own, newest first."""
    q = (
        select(Post)
        .where(_visible_to(viewer_id))
        .order_by(desc(Post.created_at), desc(Post.id))
        .offset(offset)
        .limit(limit)
        .options(selectinload(Post.user))
    )
    result = await db.execute(q)
    return list(result.scalars().all())


async def get_user_posts_visible(
    db: AsyncSession,
    author_id: int,
    viewer_id: int | None,
    offset: int = 0,
    limit: int = 20,
) -> list[Post]:
    """Get a user's posts with visibility filtering."""
    q = (
        select(Post)
        .where(Post.user_id == author_id, _visible_to(viewer_id))
        .order_by(desc(Post.created_at), desc(Post.id))
        .offset(offset)
        .limit(limit)
        .options(selectinload(Post.user))
    )
    result = await db.execute(q)
    return list(result.scalars().all())


async def get_user_liked_post_ids(
    db: AsyncSession,
    user_id: int,
    post_ids: list[int],
) -> set[int]:
    """Return set of post IDs that the user has liked."""
    if not post_ids:
        return set()
    result = await db.execute(
        select(Like.post_id).where(
            Like.user_id == user_id,
            Like.post_id.in_(post_ids),
        )
    )
    return set(row[0] for row in result.all() if row[0])


def user_to_public(user) -> UserPublic | None:
    if user is None:
        return None
    return UserPublic(id=user.id, first_name=user.first_name, last_name=user.last_name)


def post_to_response(post: Post, is_liked: bool = False) -> PostResponse:
    return PostResponse(
        id=post.id,
        user_id=post.user_id,
        content=post.content,
        image_url=post.image_url,
        is_public=post.is_public,
        likes_count=post.likes_count or 0,
        comments_count=post.comments_count or 0,
        created_at=post.created_at,
        updated_at=post.updated_at,
        user=user_to_public(post.user),
        is_liked=is_liked,
    )
