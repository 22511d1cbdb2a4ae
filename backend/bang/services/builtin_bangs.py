"""Catalog of built-in bangs available to every user.

Entries are keyed by trigger without the leading '!'. Users shadow an entry
by creating a bang with the same trigger; the catalog itself is never
modified. Reserved system command names must not appear here.
"""
from dataclasses import dataclass


@dataclass(frozen=True)
class BuiltinBang:
    trigger: str
    name: str
    domain: str
    url: str
    category: str = "Online Services"


_ENTRIES = [
    BuiltinBang("g", "Google", "www.google.com", "https://www.google.com/search?q={{{s}}}"),
    BuiltinBang("gi", "Google Images", "www.google.com", "https://www.google.com/search?tbm=isch&q={{{s}}}", "Multimedia"),
    BuiltinBang("gm", "Google Maps", "maps.google.com", "https://www.google.com/maps/search/{{{s}}}", "Region search"),
    BuiltinBang("gt", "Google Translate", "translate.google.com", "https://translate.google.com/?text={{{s}}}", "Translation"),
    BuiltinBang("ddg", "DuckDuckGo", "duckduckgo.com", "https://duckduckgo.com/?q={{{s}}}"),
    BuiltinBang("ddgl", "DuckDuckGo Lite", "lite.duckduckgo.com", "/lite/?q={{{s}}}"),
    BuiltinBang("bing", "Bing", "www.bing.com", "https://www.bing.com/search?q={{{s}}}"),
    BuiltinBang("yahoo", "Yahoo", "search.yahoo.com", "https://search.yahoo.com/search?p={{{s}}}"),
    BuiltinBang("sp", "Startpage", "www.startpage.com", "https://www.startpage.com/do/search?query={{{s}}}"),
    BuiltinBang("brave", "Brave Search", "search.brave.com", "https://search.brave.com/search?q={{{s}}}"),
    BuiltinBang("w", "Wikipedia", "en.wikipedia.org", "https://en.wikipedia.org/wiki/Special:Search?search={{{s}}}", "Research"),
    BuiltinBang("wa", "Wolfram Alpha", "www.wolframalpha.com", "https://www.wolframalpha.com/input?i={{{s}}}", "Research"),
    BuiltinBang("yt", "YouTube", "www.youtube.com", "https://www.youtube.com/results?search_query={{{s}}}", "Multimedia"),
    BuiltinBang("gh", "GitHub", "github.com", "https://github.com/search?q={{{s}}}", "Tech"),
    BuiltinBang("gl", "GitLab", "gitlab.com", "https://gitlab.com/search?search={{{s}}}", "Tech"),
    BuiltinBang("so", "Stack Overflow", "stackoverflow.com", "https://stackoverflow.com/search?q={{{s}}}", "Tech"),
    BuiltinBang("mdn", "MDN Web Docs", "developer.mozilla.org", "https://developer.mozilla.org/en-US/search?q={{{s}}}", "Tech"),
    BuiltinBang("npm", "npm", "www.npmjs.com", "https://www.npmjs.com/search?q={{{s}}}", "Tech"),
    BuiltinBang("pypi", "PyPI", "pypi.org", "https://pypi.org/search/?q={{{s}}}", "Tech"),
    BuiltinBang("py", "Python Docs", "docs.python.org", "https://docs.python.org/3/search.html?q={{{s}}}", "Tech"),
    BuiltinBang("crates", "crates.io", "crates.io", "https://crates.io/search?q={{{s}}}", "Tech"),
    BuiltinBang("docker", "Docker Hub", "hub.docker.com", "https://hub.docker.com/search?q={{{s}}}", "Tech"),
    BuiltinBang("hn", "Hacker News", "news.ycombinator.com", "https://hn.algolia.com/?q={{{s}}}", "News"),
    BuiltinBang("r", "Reddit", "www.reddit.com", "https://www.reddit.com/search/?q={{{s}}}", "News"),
    BuiltinBang("a", "Amazon", "www.amazon.com", "https://www.amazon.com/s?k={{{s}}}", "Shopping"),
    BuiltinBang("ebay", "eBay", "www.ebay.com", "https://www.ebay.com/sch/i.html?_nkw={{{s}}}", "Shopping"),
    BuiltinBang("imdb", "IMDb", "www.imdb.com", "https://www.imdb.com/find?q={{{s}}}", "Entertainment"),
    BuiltinBang("arch", "ArchWiki", "wiki.archlinux.org", "https://wiki.archlinux.org/index.php?search={{{s}}}", "Tech"),
    BuiltinBang("x", "X", "x.com", "https://x.com/search?q={{{s}}}", "News"),
]

BUILTIN_BANGS: dict[str, BuiltinBang] = {entry.trigger: entry for entry in _ENTRIES}


def get_builtin_bang(trigger_without_prefix: str | None) -> BuiltinBang | None:
    if not trigger_without_prefix:
        return None
    return BUILTIN_BANGS.get(trigger_without_prefix.lower())
