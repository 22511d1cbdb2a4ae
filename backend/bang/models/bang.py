"""Bang model - a user's custom shortcut trigger."""
from datetime import datetime
from sqlalchemy import String, Text, Integer, Boolean, DateTime, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from bang.models.base import Base, TimestampMixin, UserMixin


class Bang(Base, TimestampMixin, UserMixin):
    __tablename__ = "bangs"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    trigger: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(255), default="")
    action_type: Mapped[str] = mapped_column(String(20), default="search")  # "search" or "redirect"
    url: Mapped[str] = mapped_column(Text, nullable=False)
    hidden: Mapped[bool] = mapped_column(Boolean, default=False)
    usage_count: Mapped[int] = mapped_column(Integer, default=0)
    last_read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "trigger", name="uq_bang_trigger"),
    )
