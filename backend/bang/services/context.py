"""Per-request state handed to the dispatcher and command handlers."""
from dataclasses import dataclass, field
from typing import MutableMapping

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bang.models.user import User
from bang.services.background import BackgroundTaskRunner, background_tasks
from bang.services.enrichment import TitleFetcher, fetch_page_title
from bang.services.rate_limiter import AnonymousRateLimiter
from bang.services.trigger_cache import TriggerCache


@dataclass
class SearchContext:
    """Everything one search box request may touch.

    `session` is the request's session mapping (trigger cache and anonymous
    counters live there). `session_factory`, `tasks` and `fetch_title` are
    what background work may use; the request-scoped `db` is not.
    """
    db: AsyncSession
    session: MutableMapping
    user: User | None
    session_factory: async_sessionmaker
    fetch_title: TitleFetcher = fetch_page_title
    tasks: BackgroundTaskRunner = background_tasks
    rate_limiter: AnonymousRateLimiter = field(default_factory=AnonymousRateLimiter)

    @property
    def trigger_cache(self) -> TriggerCache:
        return TriggerCache(self.session)
