"""Persistence queries used by the resolution engine.

Thin helpers over the async ORM session. Functions that write commit
before returning; callers own the session lifecycle.
"""
from datetime import datetime, timezone

from sqlalchemy import select, delete, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bang.models.user import User
from bang.models.bang import Bang
from bang.models.tab import Tab
from bang.models.bookmark import Bookmark
from bang.models.note import Note
from bang.models.reminder import Reminder


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    return await db.get(User, user_id)


# ── Triggers ─────────────────────────────────────────────────────

async def list_bang_triggers(db: AsyncSession, user_id: int) -> list[str]:
    result = await db.execute(select(Bang.trigger).where(Bang.user_id == user_id))
    return list(result.scalars().all())


async def list_tab_triggers(db: AsyncSession, user_id: int) -> list[str]:
    result = await db.execute(select(Tab.trigger).where(Tab.user_id == user_id))
    return list(result.scalars().all())


async def find_bang(db: AsyncSession, user_id: int, trigger: str) -> Bang | None:
    result = await db.execute(
        select(Bang).where(Bang.user_id == user_id, Bang.trigger == trigger)
    )
    return result.scalar_one_or_none()


async def find_tab(db: AsyncSession, user_id: int, trigger: str) -> Tab | None:
    result = await db.execute(
        select(Tab).where(Tab.user_id == user_id, Tab.trigger == trigger)
    )
    return result.scalar_one_or_none()


async def trigger_exists(
    db: AsyncSession,
    user_id: int,
    trigger: str,
    exclude_bang_id: int | None = None,
    exclude_tab_id: int | None = None,
) -> bool:
    """Whether the trigger is taken by any bang or tab of the user."""
    bang_query = select(Bang.id).where(Bang.user_id == user_id, Bang.trigger == trigger)
    if exclude_bang_id is not None:
        bang_query = bang_query.where(Bang.id != exclude_bang_id)
    if (await db.execute(bang_query.limit(1))).first():
        return True

    tab_query = select(Tab.id).where(Tab.user_id == user_id, Tab.trigger == trigger)
    if exclude_tab_id is not None:
        tab_query = tab_query.where(Tab.id != exclude_tab_id)
    return (await db.execute(tab_query.limit(1))).first() is not None


# ── Bangs ────────────────────────────────────────────────────────

async def create_bang(db: AsyncSession, **fields) -> Bang:
    bang = Bang(**fields)
    db.add(bang)
    await db.commit()
    await db.refresh(bang)
    return bang


async def update_bang(db: AsyncSession, bang: Bang, **updates) -> Bang:
    for key, value in updates.items():
        setattr(bang, key, value)
    await db.commit()
    await db.refresh(bang)
    return bang


async def delete_bang(db: AsyncSession, user_id: int, trigger: str) -> int:
    result = await db.execute(
        delete(Bang).where(Bang.user_id == user_id, Bang.trigger == trigger)
    )
    await db.commit()
    return result.rowcount or 0


async def set_bang_name(db: AsyncSession, bang_id: int, name: str) -> None:
    await db.execute(update(Bang).where(Bang.id == bang_id).values(name=name))
    await db.commit()


async def record_bang_usage(db: AsyncSession, user_id: int, bang_id: int) -> None:
    await db.execute(
        update(Bang)
        .where(Bang.id == bang_id, Bang.user_id == user_id)
        .values(usage_count=Bang.usage_count + 1, last_read_at=datetime.now(timezone.utc))
    )
    await db.commit()


# ── Tabs ─────────────────────────────────────────────────────────

async def update_tab(db: AsyncSession, tab: Tab, **updates) -> Tab:
    for key, value in updates.items():
        setattr(tab, key, value)
    await db.commit()
    await db.refresh(tab)
    return tab


async def delete_tab(db: AsyncSession, user_id: int, trigger: str) -> int:
    result = await db.execute(
        delete(Tab).where(Tab.user_id == user_id, Tab.trigger == trigger)
    )
    await db.commit()
    return result.rowcount or 0


async def get_tab_with_items(db: AsyncSession, user_id: int, tab_id: int) -> Tab | None:
    result = await db.execute(
        select(Tab)
        .options(selectinload(Tab.items))
        .where(Tab.id == tab_id, Tab.user_id == user_id)
    )
    return result.scalar_one_or_none()


# ── Bookmarks ────────────────────────────────────────────────────

async def find_bookmarks_by_url(db: AsyncSession, user_id: int, url: str) -> list[Bookmark]:
    result = await db.execute(
        select(Bookmark)
        .where(Bookmark.user_id == user_id, Bookmark.url == url)
        .order_by(Bookmark.id)
    )
    return list(result.scalars().all())


async def create_bookmark(db: AsyncSession, **fields) -> Bookmark:
    bookmark = Bookmark(**fields)
    db.add(bookmark)
    await db.commit()
    await db.refresh(bookmark)
    return bookmark


async def set_bookmark_title(db: AsyncSession, bookmark_id: int, title: str) -> None:
    await db.execute(update(Bookmark).where(Bookmark.id == bookmark_id).values(title=title))
    await db.commit()


# ── Notes & reminders ────────────────────────────────────────────

async def create_note(db: AsyncSession, **fields) -> Note:
    note = Note(**fields)
    db.add(note)
    await db.commit()
    await db.refresh(note)
    return note


async def create_reminder(db: AsyncSession, **fields) -> Reminder:
    reminder = Reminder(**fields)
    db.add(reminder)
    await db.commit()
    await db.refresh(reminder)
    return reminder


async def set_reminder_title(db: AsyncSession, reminder_id: int, title: str) -> None:
    await db.execute(update(Reminder).where(Reminder.id == reminder_id).values(title=title))
    await db.commit()


