"""Background enrichment of rows created from the search box.

Bookmarks, bangs and reminders start with a placeholder name; these helpers
fetch the destination's <title> and patch the row afterwards. Usage counters
are bumped the same way. Every helper logs and swallows its own database
errors because it runs after the response has been sent.
"""
import asyncio
import logging
import re
from typing import Awaitable, Callable

import aiohttp
from sqlalchemy.ext.asyncio import async_sessionmaker

from bang.config import settings
from bang.services import store
from bang.services.validation import is_valid_url

logger = logging.getLogger(__name__)

PLACEHOLDER_TITLE = "Fetching title..."
UNTITLED = "Untitled"
MAX_TITLE_LENGTH = 100

_TITLE_RE = re.compile(r"<title[^>]*>([^<]+)", re.IGNORECASE)

TitleFetcher = Callable[[str], Awaitable[str]]


async def fetch_page_title(url: str) -> str:
    """First <title> of the page at `url`, or "Untitled" on any failure."""
    if not is_valid_url(url):
        return UNTITLED

    timeout = aiohttp.ClientTimeout(total=settings.PAGE_TITLE_TIMEOUT)
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(url, headers={"Accept": "text/html"}) as resp:
                if resp.status != 200:
                    return UNTITLED
                buffer = ""
                async for chunk in resp.content.iter_chunked(4096):
                    buffer += chunk.decode("utf-8", errors="ignore")
                    match = _TITLE_RE.search(buffer)
                    if match:
                        return match.group(1).strip()[:MAX_TITLE_LENGTH].strip() or UNTITLED
                    if len(buffer) > 256 * 1024:
                        break
    except (aiohttp.ClientError, asyncio.TimeoutError, UnicodeError) as e:
        logger.info(f"Could not fetch title for {url}: {e}")
    return UNTITLED


async def update_bookmark_title(
    session_factory: async_sessionmaker, fetch_title: TitleFetcher, bookmark_id: int, url: str
) -> None:
    title = await fetch_title(url)
    try:
        async with session_factory() as db:
            await store.set_bookmark_title(db, bookmark_id, title)
    except Exception as e:
        logger.error(f"Failed to update title of bookmark {bookmark_id}: {e}")


async def update_bang_name(
    session_factory: async_sessionmaker, fetch_title: TitleFetcher, bang_id: int, url: str
) -> None:
    title = await fetch_title(url)
    try:
        async with session_factory() as db:
            await store.set_bang_name(db, bang_id, title)
    except Exception as e:
        logger.error(f"Failed to update name of bang {bang_id}: {e}")


async def update_reminder_title(
    session_factory: async_sessionmaker, fetch_title: TitleFetcher, reminder_id: int, url: str
) -> None:
    title = await fetch_title(url)
    try:
        async with session_factory() as db:
            await store.set_reminder_title(db, reminder_id, title)
    except Exception as e:
        logger.error(f"Failed to update title of reminder {reminder_id}: {e}")


async def insert_bookmark(
    session_factory: async_sessionmaker,
    fetch_title: TitleFetcher,
    *,
    user_id: int,
    url: str,
    title: str = "",
    hidden: bool = False,
) -> None:
    """Create a bookmark, then fill in its title when none was typed."""
    try:
        async with session_factory() as db:
            bookmark = await store.create_bookmark(
                db,
                user_id=user_id,
                url=url,
                title=title or PLACEHOLDER_TITLE,
                hidden=hidden,
                pinned=False,
            )
    except Exception as e:
        logger.error(f"Failed to insert bookmark {url} for user {user_id}: {e}")
        return

    logger.info(f"Inserted bookmark {bookmark.id} for user {user_id}")
    if not title:
        await update_bookmark_title(session_factory, fetch_title, bookmark.id, url)


async def record_bang_usage(session_factory: async_sessionmaker, user_id: int, bang_id: int) -> None:
    try:
        async with session_factory() as db:
            await store.record_bang_usage(db, user_id, bang_id)
    except Exception as e:
        logger.error(f"Failed to record usage of bang {bang_id}: {e}")
