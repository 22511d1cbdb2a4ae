"""Response builders for the search endpoint.

Redirects carry an explicit Cache-Control policy. Inline pages (command
acknowledgements, validation alerts, rate limit interstitials) are tiny
HTML documents driven by a script; every user-supplied string is escaped
for both the HTML body and the script literal.
"""
import html
import json

from fastapi.responses import HTMLResponse, RedirectResponse

from bang.config import settings

PUBLIC_CACHE = f"public, max-age={settings.REDIRECT_CACHE_SECONDS}"
PRIVATE_CACHE = f"private, max-age={settings.REDIRECT_CACHE_SECONDS}"
NO_STORE = "no-store"


def js_string(value: str) -> str:
    """A JavaScript string literal safe to embed inside <script>."""
    return (
        json.dumps(value)
        .replace("<", "\\u003c")
        .replace(">", "\\u003e")
        .replace("&", "\\u0026")
    )


def _page(body: str, script: str, status_code: int = 200) -> HTMLResponse:
    content = (
        "<!DOCTYPE html>\n"
        '<html><head><meta charset="utf-8"></head>'
        f"<body>{body}<script>{script}</script></body></html>"
    )
    return HTMLResponse(content=content, status_code=status_code, headers={"Cache-Control": NO_STORE})


def redirect(url: str, cache_control: str, vary_cookie: bool = False) -> RedirectResponse:
    response = RedirectResponse(url=url, status_code=302)
    response.headers["Cache-Control"] = cache_control
    if vary_cookie:
        response.headers["Vary"] = "Cookie"
    return response


def go_back() -> HTMLResponse:
    """Acknowledge a management command; the browser returns to where it was."""
    return _page("", "window.history.back();")


def go_back_with_alert(message: str, status_code: int = 422) -> HTMLResponse:
    return _page(
        f"<p>{html.escape(message)}</p>",
        f"alert({js_string(message)});window.history.back();",
        status_code=status_code,
    )


def redirect_with_alert(url: str, message: str) -> HTMLResponse:
    """Interstitial: show `message`, then navigate to `url` client-side."""
    return _page(
        f'<p>{html.escape(message)}</p><p><a href="{html.escape(url, quote=True)}">Continue</a></p>',
        f"alert({js_string(message)});window.location.href = {js_string(url)};",
    )
