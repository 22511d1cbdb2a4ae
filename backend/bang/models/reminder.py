"""Reminder model - one-time or recurring, due_at stored in UTC."""
from datetime import datetime
from sqlalchemy import String, Text, Boolean, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from bang.models.base import Base, TimestampMixin, UserMixin


class Reminder(Base, TimestampMixin, UserMixin):
    __tablename__ = "reminders"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    reminder_type: Mapped[str] = mapped_column(String(20), default="once")  # "once" or "recurring"
    frequency: Mapped[str | None] = mapped_column(String(20), nullable=True)
    due_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    processed: Mapped[bool] = mapped_column(Boolean, default=False)
