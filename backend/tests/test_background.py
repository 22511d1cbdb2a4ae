"""Tests for fire-and-forget tasks and title enrichment."""
import asyncio
import logging

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from sqlalchemy import select

from bang.models import Bang, Bookmark
from bang.services import enrichment
from bang.services.background import BackgroundTaskRunner
from bang.services.enrichment import (
    PLACEHOLDER_TITLE,
    UNTITLED,
    fetch_page_title,
    insert_bookmark,
    update_bang_name,
)


async def fixed_title(url):
    return "Fetched"


class TestBackgroundTaskRunner:

    @pytest.mark.asyncio
    async def test_spawn_runs_detached(self):
        runner = BackgroundTaskRunner()
        gate = asyncio.Event()
        done = []

        async def job():
            await gate.wait()
            done.append(True)

        runner.spawn(job(), name="job")
        assert runner.pending == 1
        gate.set()
        await runner.drain()
        assert done == [True]
        assert runner.pending == 0

    @pytest.mark.asyncio
    async def test_failures_only_reach_the_log(self, caplog):
        runner = BackgroundTaskRunner()

        async def boom():
            raise RuntimeError("kaboom")

        with caplog.at_level(logging.ERROR, logger="bang.services.background"):
            runner.spawn(boom(), name="boom")
            await runner.drain()
        assert "Background task boom failed: kaboom" in caplog.text

    @pytest.mark.asyncio
    async def test_drain_timeout(self, caplog):
        runner = BackgroundTaskRunner()
        task = runner.spawn(asyncio.sleep(10), name="slow")
        with caplog.at_level(logging.WARNING, logger="bang.services.background"):
            await runner.drain(timeout=0.01)
        assert "still running" in caplog.text
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)


class TestEnrichment:

    @pytest.mark.asyncio
    async def test_insert_bookmark_fills_in_title(self, session_factory, db, user):
        await insert_bookmark(session_factory, fixed_title, user_id=user.id, url="https://example.com")
        bookmark = (await db.execute(select(Bookmark))).scalar_one()
        assert bookmark.title == "Fetched"

    @pytest.mark.asyncio
    async def test_insert_bookmark_keeps_typed_title(self, session_factory, db, user):
        calls = []

        async def fetch(url):
            calls.append(url)
            return "Fetched"

        await insert_bookmark(session_factory, fetch, user_id=user.id, url="https://example.com", title="Mine")
        bookmark = (await db.execute(select(Bookmark))).scalar_one()
        assert bookmark.title == "Mine"
        assert calls == []

    @pytest.mark.asyncio
    async def test_update_bang_name(self, session_factory, db, user):
        bang = Bang(user_id=user.id, trigger="!x", name=PLACEHOLDER_TITLE, action_type="redirect", url="https://y.com")
        db.add(bang)
        await db.commit()

        await update_bang_name(session_factory, fixed_title, bang.id, bang.url)
        await db.refresh(bang)
        assert bang.name == "Fetched"

    @pytest.mark.asyncio
    async def test_database_errors_are_logged(self, caplog):
        def broken_factory():
            raise RuntimeError("no database")

        with caplog.at_level(logging.ERROR, logger="bang.services.enrichment"):
            await update_bang_name(broken_factory, fixed_title, 1, "https://y.com")
        assert "Failed to update name of bang 1" in caplog.text


class TestFetchPageTitle:

    @pytest.fixture
    def pages(self):
        async def titled(request):
            return web.Response(text="<html><head><TITLE> Hello  there </TITLE></head></html>",
                                content_type="text/html")

        async def long_title(request):
            return web.Response(text=f"<title>{'a' * 300}</title>", content_type="text/html")

        async def untitled(request):
            return web.Response(text="<html><body>nothing</body></html>", content_type="text/html")

        async def missing(request):
            return web.Response(status=404, text="<title>Not Found</title>")

        app = web.Application()
        app.router.add_get("/titled", titled)
        app.router.add_get("/long", long_title)
        app.router.add_get("/untitled", untitled)
        app.router.add_get("/missing", missing)
        return app

    @pytest.mark.asyncio
    async def test_titles(self, pages):
        async with TestServer(pages) as server:
            assert await fetch_page_title(str(server.make_url("/titled"))) == "Hello  there"
            assert await fetch_page_title(str(server.make_url("/long"))) == "a" * 100
            assert await fetch_page_title(str(server.make_url("/untitled"))) == UNTITLED
            assert await fetch_page_title(str(server.make_url("/missing"))) == UNTITLED

    @pytest.mark.asyncio
    async def test_invalid_url(self):
        assert await fetch_page_title("not a url") == UNTITLED

    @pytest.mark.asyncio
    async def test_timeout(self, pages, monkeypatch):
        async def slow(request):
            await asyncio.sleep(1)
            return web.Response(text="<title>late</title>")

        pages.router.add_get("/slow", slow)
        monkeypatch.setattr(enrichment.settings, "PAGE_TITLE_TIMEOUT", 0.05)
        async with TestServer(pages) as server:
            assert await fetch_page_title(str(server.make_url("/slow"))) == UNTITLED
