"""Query parser - classifies a raw search box string.

Three shapes are recognised:

    !g python                      -> bang command, search term "python"
    !bm Title https://example.com  -> bang command with an extracted URL
    @notes groceries               -> direct (in-app navigation) command
    anything else                  -> plain web search, taken verbatim

The parser is pure: no I/O and no retained state between calls.
"""
import re
from dataclasses import dataclass
from enum import Enum

BANG = "bang"
DIRECT = "direct"

_BANG_TOKEN_RE = re.compile(r"^![A-Za-z0-9_.]+$")
_DIRECT_TOKEN_RE = re.compile(r"^@[A-Za-z0-9_:.]+$")
# Only http(s) URLs starting on a token boundary are extracted.
_URL_RE = re.compile(r"(?<!\S)https?://\S*")


class SystemCommand(str, Enum):
    """Reserved bang triggers that mutate the user's data instead of redirecting."""
    BOOKMARK = "bm"
    ADD = "add"
    EDIT = "edit"
    DELETE = "del"
    NOTE = "note"
    REMIND = "remind"

    @property
    def trigger(self) -> str:
        return f"!{self.value}"


RESERVED_TRIGGERS = frozenset(cmd.trigger for cmd in SystemCommand)


def is_reserved_trigger(trigger: str) -> bool:
    return normalize_trigger(trigger) in RESERVED_TRIGGERS


def normalize_trigger(trigger: str) -> str:
    """Lower-case a trigger and make sure it carries the leading '!'."""
    trigger = (trigger or "").strip().lower()
    if not trigger:
        return ""
    return trigger if trigger.startswith("!") else f"!{trigger}"


@dataclass(frozen=True)
class ParsedQuery:
    command_type: str | None
    trigger: str | None
    trigger_without_prefix: str | None
    url: str | None
    search_term: str
    # Raw text after the trigger, used by the system command grammars.
    remainder: str = ""
    system_command: SystemCommand | None = None


def _split_first_token(text: str) -> tuple[str, str]:
    parts = re.split(r"\s+", text, maxsplit=1)
    return parts[0], (parts[1] if len(parts) > 1 else "")


def extract_url(text: str) -> tuple[str | None, str]:
    """Pull the first http(s) URL out of `text`.

    Returns (url, rest) where rest is the surrounding words joined by
    single spaces. url is None when nothing matched.
    """
    match = _URL_RE.search(text)
    if not match:
        return None, " ".join(text.split())
    rest = f"{text[:match.start()]} {text[match.end():]}"
    return match.group(0), " ".join(rest.split())


def parse_search_query(query: str | None) -> ParsedQuery:
    trimmed = (query or "").strip()
    if not trimmed:
        return ParsedQuery(None, None, None, None, "")

    first, rest = _split_first_token(trimmed)
    rest = rest.strip()

    if _BANG_TOKEN_RE.match(first):
        trigger = first.lower()
        without_prefix = trigger[1:]
        url, search_term = extract_url(rest)
        try:
            system_command = SystemCommand(without_prefix)
        except ValueError:
            system_command = None
        return ParsedQuery(
            command_type=BANG,
            trigger=trigger,
            trigger_without_prefix=without_prefix,
            url=url,
            search_term=search_term,
            remainder=rest,
            system_command=system_command,
        )

    if _DIRECT_TOKEN_RE.match(first):
        trigger = first.lower()
        return ParsedQuery(
            command_type=DIRECT,
            trigger=trigger,
            trigger_without_prefix=trigger[1:],
            url=None,
            search_term=rest,
            remainder=rest,
        )

    return ParsedQuery(None, None, None, None, trimmed)
