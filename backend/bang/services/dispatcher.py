"""Search box dispatcher - turns a raw query into a response.

Resolution order for `!trigger term`:

    1. system command (logged-in users only)
    2. the user's own bang
    3. built-in bang
    4. the user's tab group
    5. plain search of "trigger term" on the user's provider

`@alias term` navigates inside the app, anything else is a plain search.
Anonymous sessions are routed through the rate limiter before answering.
"""
import logging
from dataclasses import dataclass

from fastapi import Response

from bang.config import settings
from bang.services import store
from bang.services.builtin_bangs import get_builtin_bang
from bang.services.commands import CommandValidationError, run_system_command
from bang.services.context import SearchContext
from bang.services.enrichment import record_bang_usage
from bang.services.query_parser import BANG, DIRECT, ParsedQuery, parse_search_query
from bang.services.redirect_builder import (
    build_custom_bang_url,
    build_redirect_url,
    encode_component,
    search_provider_url,
)
from bang.services.responses import (
    NO_STORE,
    PRIVATE_CACHE,
    PUBLIC_CACHE,
    go_back_with_alert,
    redirect,
)
from bang.services.trigger_cache import invalidate_trigger_cache  # noqa: F401

logger = logging.getLogger(__name__)

DIRECT_COMMANDS = {
    "a": "/actions", "action": "/actions", "actions": "/actions",
    "am": "/admin", "admin": "/admin",
    "api": "/api-docs",
    "b": "/bangs", "bang": "/bangs", "bangs": "/bangs",
    "bm": "/bookmarks", "bookmark": "/bookmarks", "bookmarks": "/bookmarks",
    "d": "/settings/data", "data": "/settings/data",
    "n": "/notes", "note": "/notes", "notes": "/notes",
    "r": "/reminders", "reminder": "/reminders", "reminders": "/reminders",
    "s": "/settings", "settings": "/settings",
    "t": "/tabs", "tab": "/tabs", "tabs": "/tabs",
}


@dataclass(frozen=True)
class Resolution:
    url: str
    cache_control: str
    vary_cookie: bool = False


def _provider_for(ctx: SearchContext) -> str:
    if ctx.user and ctx.user.default_search_provider:
        return ctx.user.default_search_provider
    return settings.DEFAULT_SEARCH_PROVIDER


def _plain_search(ctx: SearchContext, term: str) -> Resolution:
    return Resolution(search_provider_url(_provider_for(ctx), term), PRIVATE_CACHE, vary_cookie=True)


def _fallback_search(ctx: SearchContext, parsed: ParsedQuery) -> Resolution:
    """Unknown bang: search for the trigger word plus the rest of the query, minus any URL."""
    term = " ".join(w for w in (parsed.trigger_without_prefix, parsed.search_term) if w)
    return Resolution(search_provider_url(_provider_for(ctx), term), NO_STORE)


def resolve_direct(ctx: SearchContext, parsed: ParsedQuery, query: str) -> Resolution:
    path = DIRECT_COMMANDS.get(parsed.trigger_without_prefix)
    if path is None:
        return _plain_search(ctx, query.strip())
    if parsed.search_term:
        path = f"{path}?search={encode_component(parsed.search_term)}"
    return Resolution(path, PRIVATE_CACHE)


async def resolve_bang(ctx: SearchContext, parsed: ParsedQuery) -> Resolution:
    user = ctx.user
    term = parsed.search_term
    cached = await ctx.trigger_cache.load(ctx.db, user.id) if user else None

    if cached and parsed.trigger in cached.bang_triggers:
        bang = await store.find_bang(ctx.db, user.id, parsed.trigger)
        if bang:
            ctx.tasks.spawn(
                record_bang_usage(ctx.session_factory, user.id, bang.id),
                name=f"bang-usage:{bang.id}",
            )
            # An owned trigger always wins over the built-in catalog
            destination = build_custom_bang_url(bang.url, bang.action_type, term)
            if destination:
                return Resolution(destination, NO_STORE)
            logger.warning(f"Bang {parsed.trigger} of user {user.id} has an unusable URL {bang.url!r}")
            return _fallback_search(ctx, parsed)
        else:
            logger.debug(f"Stale trigger cache entry {parsed.trigger} for user {user.id}")

    builtin = get_builtin_bang(parsed.trigger_without_prefix)
    if builtin:
        destination = build_redirect_url(builtin.url, builtin.domain, term)
        if destination:
            if term:
                return Resolution(destination, PRIVATE_CACHE, vary_cookie=True)
            return Resolution(destination, PUBLIC_CACHE)

    if cached and parsed.trigger in cached.tab_triggers:
        tab = await store.find_tab(ctx.db, user.id, parsed.trigger)
        if tab:
            return Resolution(f"/tabs/{tab.id}/launch", NO_STORE)

    return _fallback_search(ctx, parsed)


async def resolve(ctx: SearchContext, query: str | None) -> Response:
    """Answer one search box submission."""
    parsed = parse_search_query(query)

    if parsed.command_type == BANG and parsed.system_command and ctx.user:
        user_id = ctx.user.id
        try:
            return await run_system_command(ctx, parsed)
        except CommandValidationError as e:
            logger.info(f"Rejected {parsed.trigger} for user {user_id}: {e.message}")
            return go_back_with_alert(e.message, e.status_code)

    if parsed.command_type == BANG:
        resolution = await resolve_bang(ctx, parsed)
    elif parsed.command_type == DIRECT:
        resolution = resolve_direct(ctx, parsed, query or "")
    else:
        resolution = _plain_search(ctx, parsed.search_term)

    def respond() -> Response:
        return redirect(resolution.url, resolution.cache_control, resolution.vary_cookie)

    if ctx.user is None:
        return await ctx.rate_limiter.respond(ctx.session, resolution.url, respond)
    return respond()
