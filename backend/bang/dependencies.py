"""FastAPI dependencies shared by the routes.

Login itself lives outside this service: whoever signs the user in stores
their id in the session under ``user_id``.
"""
import logging

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from bang.database import get_db
from bang.models.user import User
from bang.services import store
from bang.services.enrichment import TitleFetcher, fetch_page_title
from bang.services.rate_limiter import AnonymousRateLimiter

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"

_rate_limiter = AnonymousRateLimiter()


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User | None:
    """The signed-in user, or None for anonymous sessions."""
    user_id = request.session.get(SESSION_USER_KEY)
    if user_id is None:
        return None
    user = await store.get_user(db, int(user_id))
    if user is None:
        logger.warning(f"Session refers to missing user {user_id}, treating as anonymous")
        request.session.pop(SESSION_USER_KEY, None)
    return user


def get_title_fetcher() -> TitleFetcher:
    return fetch_page_title


def get_rate_limiter() -> AnonymousRateLimiter:
    return _rate_limiter
