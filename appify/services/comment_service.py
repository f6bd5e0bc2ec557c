"""Comment threads: creation, deletion and tree retrieval.

Threads are read with one recursive query. Every row carries a path key built
from its ancestors, root first: one zero-padded id per level joined with ``/``.
Ids grow with insertion time, so sorting on that key yields a depth-first walk
with siblings in chronological order, which is what the tree builder expects.
"""
import logging
from collections.abc import Iterable

from sqlalchemy import Integer, String, Text, cast, delete, func, literal, literal_column, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from appify.db.counters import decremented, incremented
from appify.models.comment import Comment
from appify.models.engagement import CommentLike
from appify.models.post import Post
from appify.schemas.comment import CommentNode, CommentResponse
from appify.services.post_service import user_to_public

logger = logging.getLogger(__name__)

# Rows fetched per requested top-level comment; replies share the window
OVERFETCH_FACTOR = 10
ID_PAD_WIDTH = 10


def _padded_id(column):
    # substr('0000000000' || id, length(id) + 1) behaves like lpad(id, 10, '0') on PostgreSQL and SQLite
    id_text = cast(column, String)
    return func.substr(literal("0" * ID_PAD_WIDTH, String) + id_text, func.length(id_text) + 1)


def _path_segment(id_column):
    # Stands in for (created_at, id): both are assigned at insert, so id order is creation order.
    # Rows written with a backdated created_at would sort by id, not by timestamp.
    return cast(_padded_id(id_column), Text)


def comment_tree_query(post_id: int, limit: int, offset: int):
    """Flat depth-first listing of a post's comments as (Comment, depth) rows."""
    roots = (
        select(
            Comment.id.label("id"),
            literal_column("0", Integer).label("depth"),
            _path_segment(Comment.id).label("path"),
        )
        .where(Comment.post_id == post_id, Comment.parent_id.is_(None))
        .cte("comment_tree", recursive=True)
    )
    replies = select(
        Comment.id,
        roots.c.depth + 1,
        cast(roots.c.path + literal("/", String) + _path_segment(Comment.id), Text),
    ).join_from(Comment, roots, Comment.parent_id == roots.c.id)
    tree = roots.union_all(replies)

    return (
        select(Comment, tree.c.depth)
        .join(tree, Comment.id == tree.c.id)
        .order_by(tree.c.path)
        .limit(limit * OVERFETCH_FACTOR)
        .offset(offset)
        .options(selectinload(Comment.user))
    )


def build_comment_tree(nodes: Iterable[CommentNode]) -> list[CommentNode]:
    """Nest a depth-first ordered flat list of comments under their parents.

    Nodes whose parent is not part of the list (cut off by the window) are dropped.
    """
    nodes = list(nodes)
    by_id: dict[int, CommentNode] = {}
    for node in nodes:
        node.replies = []
        by_id[node.id] = node

    roots: list[CommentNode] = []
    for node in nodes:
        if node.parent_id is None:
            roots.append(node)
            continue
        parent = by_id.get(node.parent_id)
        if parent is not None:
            parent.replies.append(node)
    return roots


async def get_user_liked_comment_ids(db: AsyncSession, user_id: int, comment_ids: list[int]) -> set[int]:
    if not comment_ids:
        return set()
    result = await db.execute(
        select(CommentLike.comment_id).where(
            CommentLike.comment_id.in_(comment_ids),
            CommentLike.user_id == user_id,
        )
    )
    return {r[0] for r in result.all() if r[0]}


async def get_post_comments(
    db: AsyncSession,
    post_id: int,
    viewer_id: int | None = None,
    limit: int = 5,
    offset: int = 0,
) -> list[CommentNode]:
    """Comment threads of a post, nested.

    The window is applied to flat rows (limit * OVERFETCH_FACTOR from offset),
    so the number of threads returned is approximate.
    """
    result = await db.execute(comment_tree_query(post_id, limit, offset))
    rows = result.all()
    liked_ids = (
        await get_user_liked_comment_ids(db, viewer_id, [c.id for c, _ in rows]) if viewer_id else set()
    )
    nodes = [
        CommentNode(
            **comment_to_response(comment, is_liked=comment.id in liked_ids).model_dump(),
            depth=depth,
        )
        for comment, depth in rows
    ]
    return build_comment_tree(nodes)


async def get_comment(db: AsyncSession, comment_id: int) -> Comment | None:
    result = await db.execute(
        select(Comment).where(Comment.id == comment_id).options(selectinload(Comment.user))
    )
    return result.scalar_one_or_none()


async def create_comment(
    db: AsyncSession,
    *,
    user_id: int,
    post_id: int,
    content: str,
    parent_id: int | None = None,
) -> Comment:
    """Insert a comment or reply. Only top-level comments count towards the post's comments_count."""
    comment = Comment(
        user_id=user_id,
        post_id=post_id,
        parent_id=parent_id,
        content=content,
        likes_count=0,
    )
    db.add(comment)
    await db.flush()
    if parent_id is None:
        await db.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(comments_count=incremented(Post.comments_count))
            .execution_options(synchronize_session=False)
        )
    await db.refresh(comment)
    logger.info(
        "Comment %s added to post %s by user %s (parent=%s)", comment.id, post_id, user_id, parent_id
    )
    return comment


async def delete_comment(db: AsyncSession, comment: Comment) -> None:
    """Delete a comment; its replies cascade in the store.

    The post's comments_count only moves when the deleted comment was top-level.
    """
    comment_id, post_id, parent_id = comment.id, comment.post_id, comment.parent_id
    await db.execute(delete(Comment).where(Comment.id == comment_id))
    if parent_id is None:
        await db.execute(
            update(Post)
            .where(Post.id == post_id)
            .values(comments_count=decremented(Post.comments_count))
            .execution_options(synchronize_session=False)
        )
    await db.flush()
    logger.info("Comment %s deleted from post %s", comment_id, post_id)


def comment_to_response(comment: Comment, is_liked: bool = False) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        user_id=comment.user_id,
        post_id=comment.post_id,
        parent_id=comment.parent_id,
        content=comment.content,
        likes_count=comment.likes_count or 0,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        user=user_to_public(comment.user),
        is_liked=is_liked,
    )
