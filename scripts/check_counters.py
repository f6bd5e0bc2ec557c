"""Compare the denormalized counters on posts and comments with the rows they count.

Run: python scripts/check_counters.py [--fix]
"""
import argparse
import asyncio
import sys
import os

# Add project root to sys.path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import func, select, update
from appify.db.session import async_session_maker
from appify.models.comment import Comment
from appify.models.engagement import CommentLike, Like
from appify.models.post import Post


def _count(model, column, target):
    return select(func.count(model.id)).where(column == target).correlate_except(model).scalar_subquery()


async def check_counters(fix: bool = False) -> int:
    drift = 0
    async with async_session_maker() as db:
        post_rows = await db.execute(
            select(
                Post.id,
                Post.likes_count,
                _count(Like, Like.post_id, Post.id),
                Post.comments_count,
                select(func.count(Comment.id))
                .where(Comment.post_id == Post.id, Comment.parent_id.is_(None))
                .correlate_except(Comment)
                .scalar_subquery(),
            )
        )
        for post_id, likes_count, likes, comments_count, top_level in post_rows.all():
            if likes_count != likes or comments_count != top_level:
                drift += 1
                print(f"  - post {post_id}: likes {likes_count} vs {likes} rows, comments {comments_count} vs {top_level} rows")
                if fix:
                    await db.execute(
                        update(Post).where(Post.id == post_id).values(likes_count=likes, comments_count=top_level)
                    )

        comment_rows = await db.execute(
            select(Comment.id, Comment.likes_count, _count(CommentLike, CommentLike.comment_id, Comment.id))
        )
        for comment_id, likes_count, likes in comment_rows.all():
            if likes_count != likes:
                drift += 1
                print(f"  - comment {comment_id}: likes {likes_count} vs {likes} rows")
                if fix:
                    await db.execute(update(Comment).where(Comment.id == comment_id).values(likes_count=likes))

        if fix:
            await db.commit()

    if drift:
        print(f"{drift} counter(s) out of sync" + (" - fixed" if fix else ""))
    else:
        print("All counters match their rows.")
    return drift


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--fix", action="store_true", help="rewrite drifted counters from row counts")
    args = parser.parse_args()
    sys.exit(1 if asyncio.run(check_counters(fix=args.fix)) and not args.fix else 0)
