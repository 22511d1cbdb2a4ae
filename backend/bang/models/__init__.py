"""Import all models so SQLAlchemy metadata knows about them."""
from bang.models.base import Base
from bang.models.user import User
from bang.models.bang import Bang
from bang.models.tab import Tab, TabItem
from bang.models.bookmark import Bookmark
from bang.models.note import Note
from bang.models.reminder import Reminder

__all__ = [
    "Base",
    "User", "Bang", "Tab", "TabItem", "Bookmark", "Note", "Reminder",
]
