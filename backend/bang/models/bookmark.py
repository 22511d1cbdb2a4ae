"""Bookmark model."""
from sqlalchemy import String, Text, Boolean, Index
from sqlalchemy.orm import Mapped, mapped_column
from bang.models.base import Base, TimestampMixin, UserMixin


class Bookmark(Base, TimestampMixin, UserMixin):
    __tablename__ = "bookmarks"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(String(255), default="")
    hidden: Mapped[bool] = mapped_column(Boolean, default=False)
    pinned: Mapped[bool] = mapped_column(Boolean, default=False)

    __table_args__ = (
        Index("idx_bookmarks_user_url", "user_id", "url"),
    )
