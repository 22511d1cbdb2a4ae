"""FastAPI application entry point."""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from starlette.middleware.sessions import SessionMiddleware

from bang.config import settings
from bang.database import engine, get_db
from bang.models import Base
from bang.services.background import background_tasks

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup, start the reminder worker."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    from bang.services.reminder_worker import reminder_loop
    worker_task = asyncio.create_task(reminder_loop())

    yield

    # Cleanup
    worker_task.cancel()
    await background_tasks.drain(timeout=10)
    await engine.dispose()


app = FastAPI(
    title="Bang Search",
    version="1.0.0",
    description="Search box command resolution: bangs, shortcuts and quick capture.",
    lifespan=lifespan,
)

# CORS
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Signed cookie session: current user, trigger cache, anonymous counters
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.SESSION_SECRET_KEY,
    session_cookie=settings.SESSION_COOKIE_NAME,
    max_age=settings.SESSION_MAX_AGE,
    same_site="lax",
)


@app.get("/api/health")
async def health_check():
    """Verify API and database connectivity."""
    try:
        async for db in get_db():
            await db.execute(text("SELECT 1"))
            return {"status": "ok", "database": "connected"}
    except Exception as e:
        return {"status": "error", "database": str(e)}


# Register routers
from bang.routes.search import router as search_router
from bang.routes.tabs import router as tabs_router
app.include_router(search_router)
app.include_router(tabs_router)
