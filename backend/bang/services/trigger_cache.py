"""Session-scoped cache of a user's custom triggers.

Resolving `!g python` for a user who never customised `!g` should not cost a
database round trip. The user's bang and tab triggers are cached in the
signed session for an hour, so the hot path is a set-membership check.

Any flow that creates, renames or deletes a bang or tab must call
`invalidate_trigger_cache(session)` afterwards.
"""
import logging
import time
from dataclasses import dataclass
from typing import Callable, MutableMapping

from sqlalchemy.ext.asyncio import AsyncSession

from bang.config import settings
from bang.services import store

logger = logging.getLogger(__name__)

BANG_TRIGGERS_KEY = "bangTriggers"
TAB_TRIGGERS_KEY = "tabTriggers"
CACHED_AT_KEY = "triggersCachedAt"
OWNER_KEY = "triggersOwner"
_CACHE_KEYS = (BANG_TRIGGERS_KEY, TAB_TRIGGERS_KEY, CACHED_AT_KEY, OWNER_KEY)


@dataclass(frozen=True)
class CachedTriggers:
    bang_triggers: frozenset[str]
    tab_triggers: frozenset[str]
    cached_at: float


class TriggerCache:
    """View over the trigger cache fields of one session mapping."""

    def __init__(
        self,
        session: MutableMapping,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.session = session
        self.ttl_seconds = (
            ttl_seconds if ttl_seconds is not None else settings.TRIGGER_CACHE_TTL_MINUTES * 60
        )
        self._clock = clock

    def _fresh_entry(self, user_id: int) -> CachedTriggers | None:
        cached_at = self.session.get(CACHED_AT_KEY)
        if cached_at is None:
            return None
        # Another account signed in on this session since the entry was written
        if self.session.get(OWNER_KEY) != user_id:
            return None
        if self._clock() - float(cached_at) >= self.ttl_seconds:
            return None
        return CachedTriggers(
            bang_triggers=frozenset(self.session.get(BANG_TRIGGERS_KEY) or ()),
            tab_triggers=frozenset(self.session.get(TAB_TRIGGERS_KEY) or ()),
            cached_at=float(cached_at),
        )

    async def load(self, db: AsyncSession, user_id: int) -> CachedTriggers:
        """Cached triggers when younger than the TTL, otherwise re-read them."""
        entry = self._fresh_entry(user_id)
        if entry is not None:
            return entry

        bang_triggers = await store.list_bang_triggers(db, user_id)
        tab_triggers = await store.list_tab_triggers(db, user_id)
        now = self._clock()

        # Lists keep the cookie session JSON-serialisable
        self.session[BANG_TRIGGERS_KEY] = sorted(bang_triggers)
        self.session[TAB_TRIGGERS_KEY] = sorted(tab_triggers)
        self.session[CACHED_AT_KEY] = now
        self.session[OWNER_KEY] = user_id
        logger.debug(
            f"Trigger cache populated for user {user_id}: "
            f"{len(bang_triggers)} bang(s), {len(tab_triggers)} tab(s)"
        )
        return CachedTriggers(frozenset(bang_triggers), frozenset(tab_triggers), now)

    def invalidate(self) -> None:
        invalidate_trigger_cache(self.session)


def invalidate_trigger_cache(session: MutableMapping) -> None:
    """Drop the cached trigger sets, leaving the rest of the session alone."""
    for key in _CACHE_KEYS:
        session.pop(key, None)
