"""Route tests for search resolution: bangs, direct commands and plain searches."""
from urllib.parse import quote

import pytest
from sqlalchemy import select

from bang.models import Bang, Bookmark, Tab, TabItem
from bang.services.background import background_tasks
from conftest import app_client, make_user


def location(response):
    return response.headers["location"]


class TestAnonymousResolution:

    @pytest.mark.asyncio
    async def test_builtin_bang_with_term(self, anon_client):
        response = await anon_client.get("/search", params={"q": "!g test"})
        assert response.status_code == 302
        assert location(response) == "https://www.google.com/search?q=test"
        assert response.headers["cache-control"] == "private, max-age=3600"
        assert response.headers["vary"] == "Cookie"

    @pytest.mark.asyncio
    async def test_builtin_bang_homepage_is_public(self, anon_client):
        response = await anon_client.get("/search", params={"q": "!g"})
        assert location(response) == "https://www.google.com"
        assert response.headers["cache-control"] == "public, max-age=3600"
        assert "vary" not in response.headers

    @pytest.mark.asyncio
    async def test_unknown_bang_falls_back_to_search(self, anon_client):
        response = await anon_client.get("/search", params={"q": "!unknownzz foo bar"})
        assert location(response) == "https://duckduckgo.com/?q=unknownzz%20foo%20bar"
        assert response.headers["cache-control"] == "no-store"

    @pytest.mark.asyncio
    async def test_unknown_bang_fallback_leaves_out_the_url(self, anon_client):
        response = await anon_client.get("/search", params={"q": "!unknownzz https://x.com"})
        assert location(response) == "https://duckduckgo.com/?q=unknownzz"
        assert response.headers["cache-control"] == "no-store"

    @pytest.mark.asyncio
    async def test_plain_search(self, anon_client):
        response = await anon_client.get("/", params={"q": "hello world"})
        assert location(response) == "https://duckduckgo.com/?q=hello%20world"
        assert response.headers["cache-control"] == "private, max-age=3600"
        assert response.headers["vary"] == "Cookie"

    @pytest.mark.asyncio
    async def test_post_search(self, anon_client):
        response = await anon_client.post("/search", json={"q": "!w python"})
        assert location(response) == "https://en.wikipedia.org/wiki/Special:Search?search=python"

    @pytest.mark.asyncio
    async def test_system_command_degrades_to_search(self, anon_client, db):
        response = await anon_client.get("/search", params={"q": "!bm Title https://example.com"})
        assert location(response) == f"https://duckduckgo.com/?q={quote('bm Title', safe='')}"
        assert response.headers["cache-control"] == "no-store"
        await background_tasks.drain()
        assert (await db.execute(select(Bookmark))).scalars().all() == []

    @pytest.mark.asyncio
    async def test_tenth_search_shows_warning(self, anon_client):
        for _ in range(9):
            response = await anon_client.get("/search", params={"q": "!g x"})
            assert response.status_code == 302
        response = await anon_client.get("/search", params={"q": "!g x"})
        assert response.status_code == 200
        assert "You have used 10 out of 60 searches" in response.text
        assert response.headers["cache-control"] == "no-store"


class TestDirectCommands:

    @pytest.mark.asyncio
    async def test_alias_with_term(self, client):
        response = await client.get("/search", params={"q": "@notes groceries list"})
        assert location(response) == "/notes?search=groceries%20list"
        assert response.headers["cache-control"] == "private, max-age=3600"

    @pytest.mark.asyncio
    async def test_aliases_are_case_insensitive(self, client):
        response = await client.get("/search", params={"q": "@BM"})
        assert location(response) == "/bookmarks"

    @pytest.mark.asyncio
    async def test_unknown_alias_is_a_plain_search(self, client):
        response = await client.get("/search", params={"q": "@nope x"})
        assert location(response) == "https://duckduckgo.com/?q=%40nope%20x"


class TestUserResolution:

    @pytest.mark.asyncio
    async def test_user_provider_is_used(self, session_factory, rate_limiter):
        user = await make_user(session_factory, email="g@example.com", default_search_provider="google")
        async with app_client(session_factory, rate_limiter, user_id=user.id) as client:
            response = await client.get("/search", params={"q": "hello"})
            assert location(response) == "https://www.google.com/search?q=hello"
            response = await client.get("/search", params={"q": "!nothing here"})
            assert location(response) == "https://www.google.com/search?q=nothing%20here"

    @pytest.mark.asyncio
    async def test_custom_bang_shadows_builtin(self, client, db, user):
        db.add(Bang(user_id=user.id, trigger="!g", name="Mine", action_type="search",
                    url="https://search.example.com/?q={{{s}}}"))
        await db.commit()

        response = await client.get("/search", params={"q": "!g cats"})
        assert location(response) == "https://search.example.com/?q=cats"
        assert response.headers["cache-control"] == "no-store"

    @pytest.mark.asyncio
    async def test_custom_search_bang_without_term_keeps_template(self, client, db, user):
        db.add(Bang(user_id=user.id, trigger="!mys", name="Mine", action_type="search",
                    url="https://example.com/search?q={{{s}}}"))
        await db.commit()

        response = await client.get("/search", params={"q": "!mys"})
        assert location(response) == "https://example.com/search?q="
        assert response.headers["cache-control"] == "no-store"

    @pytest.mark.asyncio
    async def test_relative_custom_bang_shadows_builtin_without_term(self, client, db, user):
        db.add(Bang(user_id=user.id, trigger="!g", name="Mine", action_type="search",
                    url="/mine?q={{{s}}}"))
        await db.commit()

        response = await client.get("/search", params={"q": "!g"})
        assert location(response) == "/mine?q="
        assert response.headers["cache-control"] == "no-store"

        response = await client.get("/search", params={"q": "!g cats"})
        assert location(response) == "/mine?q=cats"

    @pytest.mark.asyncio
    async def test_unusable_custom_bang_falls_back_to_search_not_builtin(self, client, db, user):
        db.add(Bang(user_id=user.id, trigger="!g", name="Broken", action_type="search",
                    url="not a url"))
        await db.commit()

        response = await client.get("/search", params={"q": "!g cats"})
        assert location(response) == "https://duckduckgo.com/?q=g%20cats"
        assert response.headers["cache-control"] == "no-store"

    @pytest.mark.asyncio
    async def test_custom_bang_usage_is_counted(self, client, db, user):
        db.add(Bang(user_id=user.id, trigger="!home", name="Home", action_type="redirect",
                    url="https://home.example.com"))
        await db.commit()

        for _ in range(2):
            response = await client.get("/search", params={"q": "!home ignored words"})
            assert location(response) == "https://home.example.com"
        await background_tasks.drain()

        db.expire_all()
        bang = (await db.execute(select(Bang).where(Bang.trigger == "!home"))).scalar_one()
        assert bang.usage_count == 2
        assert bang.last_read_at is not None

    @pytest.mark.asyncio
    async def test_tab_group_redirects_to_launch(self, client, db, user):
        tab = Tab(user_id=user.id, trigger="!work", title="Work")
        tab.items = [
            TabItem(title="Mail", url="https://mail.example.com", position=0),
            TabItem(title="Chat", url="https://chat.example.com", position=1),
        ]
        db.add(tab)
        await db.commit()

        response = await client.get("/search", params={"q": "!work"})
        assert location(response) == f"/tabs/{tab.id}/launch"
        assert response.headers["cache-control"] == "no-store"

        page = await client.get(f"/tabs/{tab.id}/launch")
        assert page.status_code == 200
        assert page.text.index("https://mail.example.com") < page.text.index("https://chat.example.com")

    @pytest.mark.asyncio
    async def test_foreign_tab_is_not_found(self, client, db, session_factory):
        other = await make_user(session_factory, email="bob@example.com")
        tab = Tab(user_id=other.id, trigger="!secret", title="Secret")
        db.add(tab)
        await db.commit()

        response = await client.get(f"/tabs/{tab.id}/launch")
        assert response.status_code == 404

        response = await client.get("/search", params={"q": "!secret"})
        assert location(response) == "https://duckduckgo.com/?q=secret"

    @pytest.mark.asyncio
    async def test_logged_in_users_are_not_rate_limited(self, client):
        for _ in range(12):
            response = await client.get("/search", params={"q": "!g x"})
            assert response.status_code == 302
