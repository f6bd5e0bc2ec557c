"""Authentication business logic."""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from appify.core.security import verify_password, get_password_hash, create_access_token, create_refresh_token
from appify.models.user import User
from appify.schemas.user import UserCreate, UserResponse

logger = logging.getLogger(__name__)


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def create_user(db: AsyncSession, data: UserCreate) -> User:
    user = User(
        first_name=data.first_name,
        last_name=data.last_name,
        email=data.email,
        password_hash=get_password_hash(data.password),
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


async def authenticate_user(db: AsyncSession, email: str, password: str) -> User | None:
    user = await get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


def user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        first_name=user.first_name,
        last_name=user.last_name,
        email=user.email,
        registered_at=user.registered_at,
    )


def create_tokens_for_user(user: User) -> tuple[str, str]:
    return create_access_token(user.id, user.email), create_refresh_token(user.id)
