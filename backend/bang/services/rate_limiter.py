"""Progressive backpressure for anonymous searches.

Counters live in the visitor's session, so a new session starts over.
Every `warning_interval` searches the visitor sees a reminder to log in;
at the limit the delay doubles and from then on each search waits that
long before redirecting. The wait is an asyncio sleep: other requests on
the same process keep running meanwhile.
"""
import asyncio
import logging
from typing import Awaitable, Callable, MutableMapping

from fastapi import Response

from bang.config import settings
from bang.services.responses import redirect_with_alert

logger = logging.getLogger(__name__)

SEARCH_COUNT_KEY = "searchCount"
CUMULATIVE_DELAY_KEY = "cumulativeDelay"

EXCEEDED_MESSAGE = (
    "You've exceeded the search limit for unauthenticated users. "
    "Please log in for unlimited searches without delays."
)


class RateLimitState:
    """Anonymous counters stored in the session mapping."""

    def __init__(self, session: MutableMapping):
        self.session = session

    @property
    def search_count(self) -> int:
        return int(self.session.get(SEARCH_COUNT_KEY) or 0)

    @search_count.setter
    def search_count(self, value: int) -> None:
        self.session[SEARCH_COUNT_KEY] = value

    @property
    def cumulative_delay_ms(self) -> int:
        return int(self.session.get(CUMULATIVE_DELAY_KEY) or 0)

    @cumulative_delay_ms.setter
    def cumulative_delay_ms(self, value: int) -> None:
        self.session[CUMULATIVE_DELAY_KEY] = value


class AnonymousRateLimiter:

    def __init__(
        self,
        search_limit: int | None = None,
        warning_interval: int | None = None,
        delay_increment_ms: int | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.search_limit = search_limit or settings.ANON_SEARCH_LIMIT
        self.warning_interval = warning_interval or settings.ANON_WARNING_INTERVAL
        self.delay_increment_ms = delay_increment_ms or settings.ANON_DELAY_INCREMENT_MS
        self._sleep = sleep

    def warning_message(self, search_count: int) -> str:
        return (
            f"You have used {search_count} out of {self.search_limit} searches. "
            "Log in for unlimited searches!"
        )

    async def respond(
        self,
        session: MutableMapping,
        destination: str,
        normal_response: Callable[[], Response],
    ) -> Response:
        """Count one anonymous search and pick the response for it."""
        state = RateLimitState(session)
        count = state.search_count + 1
        state.search_count = count

        if count < self.search_limit and count % self.warning_interval == 0:
            return redirect_with_alert(destination, self.warning_message(count))

        if count == self.search_limit:
            state.cumulative_delay_ms = max(state.cumulative_delay_ms, self.delay_increment_ms) * 2
            logger.info(f"Anonymous session hit the search limit, delay now {state.cumulative_delay_ms}ms")
            return redirect_with_alert(destination, EXCEEDED_MESSAGE)

        if count > self.search_limit:
            delay_ms = state.cumulative_delay_ms
            await self._sleep(delay_ms / 1000)
            return redirect_with_alert(
                destination,
                f"This search was delayed by {delay_ms / 1000:g} seconds due to rate limiting.",
            )

        return normal_response()
