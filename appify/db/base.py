"""SQLAlchemy declarative base and model imports for Alembic."""
from appify.db.session import Base  # noqa: F401
from appify.models.user import User  # noqa: F401
from appify.models.post import Post  # noqa: F401
from appify.models.comment import Comment  # noqa: F401
from appify.models.engagement import Like, CommentLike  # noqa: F401

__all__ = ["Base", "User", "Post", "Comment", "Like", "CommentLike"]
