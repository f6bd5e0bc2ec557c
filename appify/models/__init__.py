from appify.models.user import User
from appify.models.post import Post
from appify.models.comment import Comment
from appify.models.engagement import CommentLike, Like

__all__ = ["User", "Post", "Comment", "Like", "CommentLike"]
