"""Search box routes."""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from bang.database import get_db, get_session_factory
from bang.dependencies import get_current_user, get_rate_limiter, get_title_fetcher
from bang.models.user import User
from bang.schemas.search import SearchQuery
from bang.services.context import SearchContext
from bang.services.dispatcher import resolve
from bang.services.enrichment import TitleFetcher
from bang.services.rate_limiter import AnonymousRateLimiter

router = APIRouter(tags=["search"])


async def get_search_context(
    request: Request,
    db: AsyncSession = Depends(get_db),
    user: User | None = Depends(get_current_user),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    fetch_title: TitleFetcher = Depends(get_title_fetcher),
    rate_limiter: AnonymousRateLimiter = Depends(get_rate_limiter),
) -> SearchContext:
    return SearchContext(
        db=db,
        session=request.session,
        user=user,
        session_factory=session_factory,
        fetch_title=fetch_title,
        rate_limiter=rate_limiter,
    )


@router.get("/")
async def search_root(
    q: str = Query(""),
    ctx: SearchContext = Depends(get_search_context),
):
    """Browser search engine entry point: /?q=%s"""
    return await resolve(ctx, q)


@router.get("/search")
async def search(
    q: str = Query(""),
    ctx: SearchContext = Depends(get_search_context),
):
    return await resolve(ctx, q)


@router.post("/search")
async def search_post(
    body: SearchQuery,
    ctx: SearchContext = Depends(get_search_context),
):
    """Same as GET /search, for clients that keep the query out of the URL."""
    return await resolve(ctx, body.q)
