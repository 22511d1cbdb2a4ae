"""Syntactic validators shared by the command handlers and routes."""
import re
from urllib.parse import urlsplit

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_ALPHANUMERIC_RE = re.compile(r"^[a-zA-Z0-9]+$")
_WWW_PREFIX_RE = re.compile(r"^www\.", re.IGNORECASE)
_DOMAIN_RE = re.compile(
    r"^[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(\.[a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*\.[a-zA-Z]{2,}$"
)


def is_valid_url(url: str | None) -> bool:
    """True for absolute URLs with a scheme and a host (or a path for opaque schemes)."""
    if not url or any(c.isspace() for c in url):
        return False
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    if not parts.scheme or not re.match(r"^[a-zA-Z][a-zA-Z0-9+.-]*$", parts.scheme):
        return False
    if parts.scheme.lower() in ("http", "https"):
        return bool(parts.netloc)
    return bool(parts.netloc or parts.path)


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email or ""))


def is_only_letters_and_numbers(value: str) -> bool:
    return bool(_ALPHANUMERIC_RE.match(value or ""))


def is_url_like(value: str | None) -> bool:
    """Loose check used for reminder content: full URLs, www.* or bare domains."""
    if not value:
        return False
    candidate = value.strip()
    if candidate.lower().startswith(("http://", "https://")):
        return is_valid_url(candidate)
    if _WWW_PREFIX_RE.match(candidate) or _DOMAIN_RE.match(candidate):
        return is_valid_url(f"https://{candidate}")
    return False
