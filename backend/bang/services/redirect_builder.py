"""Redirect URL construction for bangs and plain searches."""
from urllib.parse import quote, urljoin, urlsplit

from bang.services.validation import is_valid_url

PLACEHOLDERS = ("{{{s}}}", "{query}")

SEARCH_PROVIDERS = {
    "duckduckgo": "https://duckduckgo.com/?q={{{s}}}",
    "google": "https://www.google.com/search?q={{{s}}}",
    "yahoo": "https://search.yahoo.com/search?p={{{s}}}",
    "bing": "https://www.bing.com/search?q={{{s}}}",
}
DEFAULT_PROVIDER = "duckduckgo"


def encode_component(value: str) -> str:
    """Percent-encode like JavaScript's encodeURIComponent."""
    return quote(value, safe="!~*'()")


def add_https(url: str) -> str:
    """Force an https:// scheme onto a bare domain or http URL."""
    url = (url or "").strip()
    if not url:
        raise ValueError("Invalid input: URL cannot be empty")
    if url.lower().startswith("https://"):
        return url
    if url.lower().startswith("http://"):
        url = url[7:]
    return "https://" + url.lstrip("/")


def _is_relative(template: str) -> bool:
    return template.startswith("/") and not template.startswith("//")


def _substitute(template: str, value: str) -> str:
    """Replace the first placeholder occurrence in the template."""
    found = [(template.find(p), p) for p in PLACEHOLDERS if p in template]
    if not found:
        return template
    _, placeholder = min(found)
    return template.replace(placeholder, value, 1)


def _homepage(domain: str | None, template: str) -> str | None:
    if domain and domain.strip():
        return add_https(domain)
    if template.startswith("//"):
        template = "https:" + template
    parts = urlsplit(template)
    if parts.scheme in ("http", "https") and parts.netloc:
        return f"{parts.scheme}://{parts.netloc}"
    return None


def build_redirect_url(url_template: str | None, domain: str | None, search_term: str = "") -> str | None:
    """Resolve a bang definition against a search term.

    With a term, the first placeholder is replaced by the encoded term.
    Without one, the bang's homepage is used. Path-relative templates are
    only anchored to the domain when the term is empty; with a term the
    relative path is returned as is.

    Returns None when neither the template nor the domain yields a URL.
    """
    template = (url_template or "").strip()
    if template.startswith("//"):
        template = "https:" + template

    if search_term:
        if _is_relative(template):
            return _substitute(template, encode_component(search_term))
        if template and is_valid_url(template):
            return _substitute(template, encode_component(search_term))
        return _homepage(domain, template)

    if _is_relative(template) and domain:
        return urljoin(add_https(domain), _substitute(template, ""))
    return _homepage(domain, template)


def build_custom_bang_url(url: str, action_type: str, search_term: str = "") -> str | None:
    """Destination for a user-owned bang.

    Search bangs always land on their template, with the placeholder
    replaced by the encoded term even when the term is empty. None when the
    template is neither an absolute nor a path-relative URL.
    """
    if action_type == "redirect":
        return url
    template = (url or "").strip()
    if template.startswith("//"):
        template = "https:" + template
    if _is_relative(template) or (template and is_valid_url(template)):
        return _substitute(template, encode_component(search_term))
    return None


def search_provider_url(provider: str | None, search_term: str) -> str:
    template = SEARCH_PROVIDERS.get(provider or DEFAULT_PROVIDER, SEARCH_PROVIDERS[DEFAULT_PROVIDER])
    return template.replace("{{{s}}}", encode_component(search_term), 1)
