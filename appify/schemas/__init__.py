from appify.schemas.user import (
    UserCreate,
    UserResponse,
    UserPublic,
    Token,
    TokenRefresh,
    LoginRequest,
)
from appify.schemas.post import PostResponse, LikeToggleResponse, LikeResponse, LikePage
from appify.schemas.comment import CommentCreate, CommentResponse, CommentNode, CommentPage
