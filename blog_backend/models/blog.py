import enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from app.database import Base


class BlogCategory(str, enum.Enum):
    TECHNOLOGY = "TECHNOLOGY"
    PROGRAMMING = "PROGRAMMING"
    SCIENCE = "SCIENCE"
    HEALTH = "HEALTH"
    TRAVEL = "TRAVEL"
    FOOD = "FOOD"
    LIFESTYLE = "LIFESTYLE"
    EDUCATION = "EDUCATION"
    BUSINESS = "BUSINESS"
    FINANCE = "FINANCE"
    ENTERTAINMENT = "ENTERTAINMENT"
    SPORTS = "SPORTS"
    POLITICS = "POLITICS"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, value):
        """Accept a member, its name (any case) or its ordinal."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            members = list(cls)
            if 0 <= value < len(members):
                return members[value]
            raise ValueError(f"category ordinal must be between 0 and {len(members) - 1}")
        raw = str(value or "").strip()
        if raw.isdigit():
            return cls.parse(int(raw))
        try:
            return cls[raw.upper()]
        except KeyError:
            raise ValueError(f"unknown category: {value}") from None


post_tags = Table(
    "post_tags",
    Base.metadata,
    Column("post_id", Integer, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    category = Column(String(32), index=True, nullable=False, default=BlogCategory.OTHER.value)
    image_urls = Column(Text, default="[]")  # JSON array string
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Tag(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(64), unique=True, index=True, nullable=False)  # trimmed, upper-cased


class Comment(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="RESTRICT"), index=True, nullable=False)
    parent_comment_id = Column(Integer, ForeignKey("comments.id", ondelete="RESTRICT"), index=True, nullable=True)
    user_id = Column(String, index=True, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class Like(Base):
    __tablename__ = "likes"
    __table_args__ = (
        UniqueConstraint("user_id", "post_id", name="uq_like_user_post"),
        UniqueConstraint("user_id", "comment_id", name="uq_like_user_comment"),
        CheckConstraint(
            "(post_id IS NOT NULL AND comment_id IS NULL) OR (post_id IS NULL AND comment_id IS NOT NULL)",
            name="ck_like_single_target",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, index=True, nullable=False)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="RESTRICT"), index=True, nullable=True)
    comment_id = Column(Integer, ForeignKey("comments.id", ondelete="RESTRICT"), index=True, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
