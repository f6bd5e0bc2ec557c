"""Post model: text and/or a single image, public or owner-only."""
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from appify.db.session import Base


class Post(Base):
    __tablename__ = "posts"
    __table_args__ = (
        CheckConstraint("content IS NOT NULL OR image_url IS NOT NULL", name="ck_posts_content_or_image"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)
    is_public = Column(Boolean, nullable=False, default=False)
    # Denormalized: likes_count == rows in likes, comments_count == top-level rows in comments
    likes_count = Column(Integer, nullable=False, default=0)
    comments_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="posts")
    comments = relationship("Comment", back_populates="post", passive_deletes=True)
    likes = relationship("Like", back_populates="post", passive_deletes=True)
