"""System commands typed into the search box.

    !bm [title] <url> [--hide]               bookmark a URL, then go there
    !add [!]trigger <url> [name] [--hide]    create a redirect bang
    !edit [!]trigger [[!]new] [url]          rename a bang/tab or change its URL
    !del [!]trigger                          delete a bang or tab
    !note [title |] content [--hide]         save a note
    !remind [daily|weekly|monthly] ...       schedule a reminder

Every handler requires a logged-in user; the dispatcher never calls them for
anonymous sessions. Management commands answer with a page that steps the
browser back. Invalid input raises CommandValidationError, which the
dispatcher renders as a 422 alert.
"""
import logging
import re

from fastapi import Response
from sqlalchemy.exc import IntegrityError

from bang.config import settings
from bang.services import store
from bang.services.context import SearchContext
from bang.services.enrichment import (
    PLACEHOLDER_TITLE,
    UNTITLED,
    insert_bookmark,
    update_bang_name,
    update_reminder_title,
)
from bang.services.query_parser import (
    ParsedQuery,
    SystemCommand,
    extract_url,
    is_reserved_trigger,
    normalize_trigger,
)
from bang.services.redirect_builder import add_https
from bang.services.reminder_timing import (
    FREQUENCIES,
    parse_calendar_date,
    parse_reminder_timing,
)
from bang.services.responses import NO_STORE, go_back, redirect
from bang.services.validation import is_only_letters_and_numbers, is_url_like, is_valid_url

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 255
_HIDE_FLAG_RE = re.compile(r"(?<!\S)--hide(?!\S)")

EDIT_FORMAT_HINT = "Invalid format. Use: !edit !trigger !newTrigger or !edit !trigger newUrl"
HIDE_PASSWORD_REQUIRED = "You must set a global password in settings before hiding items"


class CommandValidationError(Exception):
    """User-facing rejection of a system command."""

    def __init__(self, message: str, status_code: int = 422):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


# Command handler registry - one entry per SystemCommand
COMMAND_HANDLERS = {}


def register_command(command: SystemCommand):
    """Decorator to register a system command handler."""
    def decorator(func):
        COMMAND_HANDLERS[command] = func
        return func
    return decorator


async def run_system_command(ctx: SearchContext, parsed: ParsedQuery) -> Response:
    """Dispatch a parsed system command to its handler."""
    handler = COMMAND_HANDLERS.get(parsed.system_command)
    if not handler:
        raise ValueError(f"Unknown system command: {parsed.system_command}")
    return await handler(ctx, parsed)


def strip_hide_flag(text: str) -> tuple[str, bool]:
    """Remove a standalone --hide token. Returns (text, was_present)."""
    if not _HIDE_FLAG_RE.search(text):
        return text.strip(), False
    return " ".join(_HIDE_FLAG_RE.sub(" ", text).split()), True


def _split_first_token(text: str) -> tuple[str, str]:
    parts = text.strip().split(None, 1)
    if not parts:
        return "", ""
    return parts[0], (parts[1] if len(parts) > 1 else "")


def _require_hide_password(ctx: SearchContext, hide: bool) -> None:
    if hide and not ctx.user.can_hide_items:
        raise CommandValidationError(HIDE_PASSWORD_REQUIRED)


def _check_title_length(title: str, label: str = "Title") -> None:
    if len(title) > MAX_TITLE_LENGTH:
        raise CommandValidationError(f"{label} must be shorter than {MAX_TITLE_LENGTH} characters")


# ── !bm ──────────────────────────────────────────────────────────

@register_command(SystemCommand.BOOKMARK)
async def handle_bookmark(ctx: SearchContext, parsed: ParsedQuery) -> Response:
    """Bookmark a URL and redirect to it straight away; the insert runs in the background."""
    user = ctx.user
    title, hide = strip_hide_flag(parsed.search_term)
    title = " ".join(title.split())
    url = parsed.url

    if not url or not is_valid_url(url):
        raise CommandValidationError("Invalid or missing URL")
    _check_title_length(title)
    _require_hide_password(ctx, hide)

    # An untitled bookmark collides with anything already saved at that URL
    for existing in await store.find_bookmarks_by_url(ctx.db, user.id, url):
        if not title or (existing.title or "").lower() == title.lower():
            raise CommandValidationError(
                f"URL already bookmarked as {existing.title}. Bookmark already exists."
            )

    ctx.tasks.spawn(
        insert_bookmark(
            ctx.session_factory,
            ctx.fetch_title,
            user_id=user.id,
            url=url,
            title=title,
            hidden=hide,
        ),
        name=f"insert-bookmark:{user.id}",
    )
    return redirect(url, NO_STORE)


# ── !add ─────────────────────────────────────────────────────────

@register_command(SystemCommand.ADD)
async def handle_add(ctx: SearchContext, parsed: ParsedQuery) -> Response:
    user = ctx.user
    raw_trigger, rest = _split_first_token(parsed.remainder)
    if raw_trigger.lower().startswith(("http://", "https://")):
        raw_trigger, rest = "", parsed.remainder
    url, name_words = extract_url(rest)
    name, hide = strip_hide_flag(name_words)

    if not raw_trigger or not url or not is_valid_url(url):
        raise CommandValidationError("Invalid trigger or empty URL")

    trigger = normalize_trigger(raw_trigger)
    if is_reserved_trigger(trigger):
        raise CommandValidationError(
            f"{trigger} is a bang's systems command. Please choose a different trigger"
        )
    if not is_only_letters_and_numbers(trigger[1:]):
        raise CommandValidationError(f"{trigger} trigger can only contain letters and numbers")
    if await store.trigger_exists(ctx.db, user.id, trigger):
        raise CommandValidationError(f"{trigger} already exists. Please choose a different trigger")
    _check_title_length(name, "Name")
    _require_hide_password(ctx, hide)

    try:
        bang = await store.create_bang(
            ctx.db,
            user_id=user.id,
            trigger=trigger,
            name=name or PLACEHOLDER_TITLE,
            action_type="redirect",
            url=url,
            hidden=hide,
        )
    except IntegrityError:
        await ctx.db.rollback()
        raise CommandValidationError(f"{trigger} already exists. Please choose a different trigger")

    ctx.trigger_cache.invalidate()
    logger.info(f"User {user.id} added bang {trigger}")

    if not name:
        ctx.tasks.spawn(
            update_bang_name(ctx.session_factory, ctx.fetch_title, bang.id, url),
            name=f"bang-title:{bang.id}",
        )
    return go_back()


# ── !del ─────────────────────────────────────────────────────────

@register_command(SystemCommand.DELETE)
async def handle_delete(ctx: SearchContext, parsed: ParsedQuery) -> Response:
    user = ctx.user
    raw_trigger, _ = _split_first_token(parsed.remainder)
    if not raw_trigger:
        raise CommandValidationError("Please specify a trigger to delete")
    trigger = normalize_trigger(raw_trigger)

    deleted = await store.delete_bang(ctx.db, user.id, trigger)
    if not deleted:
        deleted = await store.delete_tab(ctx.db, user.id, trigger)
    if not deleted:
        raise CommandValidationError(
            f"Bang '{trigger}' not found or you don't have permission to delete it"
        )

    ctx.trigger_cache.invalidate()
    logger.info(f"User {user.id} deleted {trigger}")
    return go_back()


# ── !edit ────────────────────────────────────────────────────────

def _parse_edit_arguments(remainder: str) -> tuple[str, str | None, str | None]:
    """Split `!edit` arguments into (old trigger, new trigger, new url)."""
    parts = remainder.split()
    if len(parts) < 2 or len(parts) > 3:
        raise CommandValidationError(EDIT_FORMAT_HINT)

    old_trigger = normalize_trigger(parts[0])
    new_trigger = None
    new_url = None

    second = parts[1]
    if second.lower().startswith(("http://", "https://")):
        if len(parts) == 3:
            raise CommandValidationError(EDIT_FORMAT_HINT)
        new_url = second
    else:
        new_trigger = normalize_trigger(second)
        if len(parts) == 3:
            new_url = parts[2]
    return old_trigger, new_trigger, new_url


@register_command(SystemCommand.EDIT)
async def handle_edit(ctx: SearchContext, parsed: ParsedQuery) -> Response:
    user = ctx.user
    old_trigger, new_trigger, new_url = _parse_edit_arguments(parsed.remainder)

    bang = await store.find_bang(ctx.db, user.id, old_trigger)
    tab = None if bang else await store.find_tab(ctx.db, user.id, old_trigger)
    if not bang and not tab:
        raise CommandValidationError(
            f"Bang '{old_trigger}' not found or you don't have permission to edit it"
        )

    if new_trigger:
        if is_reserved_trigger(new_trigger):
            raise CommandValidationError(
                f"{new_trigger} is a system command and cannot be used as a trigger"
            )
        if await store.trigger_exists(
            ctx.db, user.id, new_trigger,
            exclude_bang_id=bang.id if bang else None,
            exclude_tab_id=tab.id if tab else None,
        ):
            raise CommandValidationError(
                f"{new_trigger} already exists. Please choose a different trigger"
            )
        if not is_only_letters_and_numbers(new_trigger[1:]):
            raise CommandValidationError(f"{new_trigger} trigger can only contain letters and numbers")

    if new_url is not None and not is_valid_url(new_url):
        raise CommandValidationError("Invalid URL format")

    if tab:
        if new_url is not None:
            raise CommandValidationError("Tabs do not have a URL. Use: !edit !trigger !newTrigger")
        await store.update_tab(ctx.db, tab, trigger=new_trigger)
        ctx.trigger_cache.invalidate()
        logger.info(f"User {user.id} renamed tab {old_trigger} to {new_trigger}")
        return go_back()

    updates = {}
    if new_trigger:
        updates["trigger"] = new_trigger
    if new_url is not None:
        updates["url"] = new_url
    try:
        await store.update_bang(ctx.db, bang, **updates)
    except IntegrityError:
        await ctx.db.rollback()
        raise CommandValidationError(f"{new_trigger} already exists. Please choose a different trigger")

    ctx.trigger_cache.invalidate()
    logger.info(f"User {user.id} edited bang {old_trigger} ({', '.join(updates)})")

    if new_url is not None:
        ctx.tasks.spawn(
            update_bang_name(ctx.session_factory, ctx.fetch_title, bang.id, new_url),
            name=f"bang-title:{bang.id}",
        )
    return go_back()


# ── !note ────────────────────────────────────────────────────────

@register_command(SystemCommand.NOTE)
async def handle_note(ctx: SearchContext, parsed: ParsedQuery) -> Response:
    text, hide = strip_hide_flag(parsed.remainder)

    if "|" in text:
        title, content = text.split("|", 1)
        title = title.strip() or UNTITLED
        content = content.strip()
    else:
        title, content = UNTITLED, text.strip()

    _check_title_length(title)
    if not content:
        raise CommandValidationError("Content is required")
    _require_hide_password(ctx, hide)

    note = await store.create_note(
        ctx.db,
        user_id=ctx.user.id,
        title=title,
        content=content,
        hidden=hide,
        pinned=False,
    )
    logger.info(f"User {ctx.user.id} created note {note.id}")
    return go_back()


# ── !remind ──────────────────────────────────────────────────────

def parse_reminder_command(remainder: str) -> tuple[str | None, str, str, bool]:
    """Split `!remind` arguments.

    Returns (frequency or None, description, content, needs_title). The last
    flag is set when only a URL was given and the description should be
    filled in from the page title.
    """
    text = remainder.strip()
    first, rest = _split_first_token(text)
    frequency = None
    if first.lower() in FREQUENCIES:
        frequency = first.lower()
        text = rest.strip()

    if "|" in text:
        parts = text.split("|", 2)
        if frequency is None and parts[0].strip().lower() in FREQUENCIES:
            frequency = parts[0].strip().lower()
            parts = parts[1:] if len(parts) > 1 else [""]
        elif not parts[0].strip() and len(parts) > 1:
            parts = parts[1:]
        description = parts[0].strip()
        content = "|".join(parts[1:]).strip()
        if not description:
            raise CommandValidationError("Description is required")
        return frequency, description, content or description, False

    words = text.split()
    if not words:
        raise CommandValidationError("Reminder content is required")

    last = words[-1]
    if is_url_like(last):
        content = last if last.lower().startswith(("http://", "https://")) else add_https(last)
        description = " ".join(words[:-1])
        if not description:
            return frequency, UNTITLED, content, True
        return frequency, description, content, False

    if len(words) > 1 and parse_calendar_date(last):
        return frequency, " ".join(words[:-1]), last, False

    description = " ".join(words)
    return frequency, description, description, False


@register_command(SystemCommand.REMIND)
async def handle_remind(ctx: SearchContext, parsed: ParsedQuery) -> Response:
    user = ctx.user
    frequency, description, content, needs_title = parse_reminder_command(parsed.remainder)

    if not content:
        raise CommandValidationError("Reminder content is required")
    _check_title_length(description, "Description")

    prefs = user.reminder_preferences
    default_timing = prefs.get("default_reminder_timing")
    time_of_day = prefs.get("default_reminder_time") or settings.DEFAULT_REMINDER_TIME

    if frequency is None and parse_calendar_date(content):
        timing = parse_reminder_timing(content, time_of_day, user.timezone)
    else:
        resolved = frequency or (default_timing if default_timing in FREQUENCIES else "daily")
        timing = parse_reminder_timing(resolved, time_of_day, user.timezone)

    reminder = await store.create_reminder(
        ctx.db,
        user_id=user.id,
        title=description,
        content=content,
        reminder_type=timing.type,
        frequency=timing.frequency,
        due_at=timing.next_due,
        processed=False,
    )
    logger.info(
        f"User {user.id} created {timing.type} reminder {reminder.id} due {timing.next_due.isoformat()}"
    )

    if needs_title:
        ctx.tasks.spawn(
            update_reminder_title(ctx.session_factory, ctx.fetch_title, reminder.id, content),
            name=f"reminder-title:{reminder.id}",
        )
    return go_back()
