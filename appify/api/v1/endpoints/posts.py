"""Posts: create (multipart with optional image), feed, read, delete, likes and comments."""
import logging

from celery.exceptions import OperationalError
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from appify.api.deps import get_db, get_current_user, load_accessible_post
from appify.core.config import settings
from appify.models.user import User
from appify.schemas.comment import CommentCreate, CommentPage, CommentResponse
from appify.schemas.post import LikePage, LikeToggleResponse, PostResponse
from appify.services.comment_service import comment_to_response, create_comment, get_post_comments
from appify.services.like_service import get_post_likes, toggle_post_like
from appify.services.post_service import (
    create_post,
    delete_post,
    get_feed_posts,
    get_post,
    get_user_liked_post_ids,
    post_to_response,
)
from appify.services.storage_service import get_storage
from appify.workers.media import delete_stored_media

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])

# Allowed MIME types
POST_IMAGE_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/webp", "image/gif"}

EXT_MAP = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


def _validate_file(file: UploadFile, allowed: set[str]) -> str:
    content_type = file.content_type or ""
    if content_type not in allowed:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid file type. Only JPEG, PNG, GIF, and WebP are allowed.",
        )
    return EXT_MAP[content_type]


async def _read_and_validate_size(file: UploadFile, max_size_mb: int) -> bytes:
    data = await file.read()
    if len(data) > max_size_mb * 1024 * 1024:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File too large. Max {max_size_mb}MB",
        )
    return data


def _queue_media_cleanup(image_url: str) -> None:
    try:
        delete_stored_media.delay(image_url)
    except OperationalError:
        logger.warning("Could not queue media cleanup for %s", image_url, exc_info=True)


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post_endpoint(
    content: str | None = Form(None),
    is_public: bool = Form(False),
    image: UploadFile | None = File(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    content = (content or "").strip() or None
    has_image = image is not None and bool(image.filename)
    if not content and not has_image:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Post must contain text or an image")

    image_url = None
    if has_image:
        ext = _validate_file(image, POST_IMAGE_TYPES)
        data = await _read_and_validate_size(image, max_size_mb=settings.MAX_IMAGE_SIZE_MB)
        image_url = await run_in_threadpool(
            get_storage().save, str(current_user.id), "posts", data, ext, image.content_type
        )

    try:
        post = await create_post(db, current_user.id, content=content, image_url=image_url, is_public=is_public)
        await db.commit()
    except Exception:
        if image_url:
            _queue_media_cleanup(image_url)
        raise
    post.user = current_user
    return post_to_response(post, is_liked=False)


@router.get("", response_model=list[PostResponse])
async def list_posts(
    offset: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    posts = await get_feed_posts(db, current_user.id, offset=offset, limit=limit)
    liked_ids = await get_user_liked_post_ids(db, current_user.id, [p.id for p in posts])
    return [post_to_response(p, is_liked=p.id in liked_ids) for p in posts]


@router.get("/{post_id}", response_model=PostResponse)
async def get_post_endpoint(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await load_accessible_post(db, post_id, current_user)
    liked_ids = await get_user_liked_post_ids(db, current_user.id, [post.id])
    return post_to_response(post, is_liked=post.id in liked_ids)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post_endpoint(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await get_post(db, post_id)
    if not post:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    if post.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only delete your own posts")
    image_url = post.image_url
    await delete_post(db, post)
    await db.commit()
    if image_url:
        _queue_media_cleanup(image_url)
    return None


@router.post("/{post_id}/toggle-like", response_model=LikeToggleResponse)
async def toggle_like_endpoint(
    post_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await load_accessible_post(db, post_id, current_user)
    try:
        liked, likes_count = await toggle_post_like(db, post_id, current_user.id)
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Like is already being recorded")
    return LikeToggleResponse(
        message="Post liked" if liked else "Post unliked",
        liked=liked,
        likes_count=likes_count,
    )


@router.get("/{post_id}/likes", response_model=LikePage)
async def list_post_likes(
    post_id: int,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await load_accessible_post(db, post_id, current_user)
    likes = await get_post_likes(db, post_id, limit=limit, offset=offset)
    return LikePage(likes=likes, total=post.likes_count or 0, limit=limit, offset=offset)


@router.get("/{post_id}/comments", response_model=CommentPage)
async def list_post_comments(
    post_id: int,
    limit: int = Query(5, ge=1, le=50),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await load_accessible_post(db, post_id, current_user)
    comments = await get_post_comments(db, post_id, current_user.id, limit=limit, offset=offset)
    return CommentPage(comments=comments, total=post.comments_count or 0, limit=limit, offset=offset)


@router.post("/{post_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_post_comment(
    post_id: int,
    data: CommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await load_accessible_post(db, post_id, current_user)
    comment = await create_comment(db, user_id=current_user.id, post_id=post_id, content=data.content)
    await db.commit()
    comment.user = current_user
    return comment_to_response(comment, is_liked=False)
