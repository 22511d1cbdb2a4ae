"""User model - account owning bangs, tabs, bookmarks, notes and reminders."""
from sqlalchemy import String, JSON
from sqlalchemy.orm import Mapped, mapped_column
from bang.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    username: Mapped[str] = mapped_column(String(100), default="")
    default_search_provider: Mapped[str] = mapped_column(String(50), default="duckduckgo")
    timezone: Mapped[str] = mapped_column(String(64), default="UTC")
    hidden_items_password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    column_preferences: Mapped[dict] = mapped_column(JSON, default=dict)

    @property
    def reminder_preferences(self) -> dict:
        """The `reminders` section of column_preferences (may be empty)."""
        prefs = self.column_preferences or {}
        reminders = prefs.get("reminders")
        return reminders if isinstance(reminders, dict) else {}

    @property
    def can_hide_items(self) -> bool:
        return bool(self.hidden_items_password)
