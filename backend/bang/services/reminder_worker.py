"""Reminder digest worker.

Runs as an asyncio task within the FastAPI process. Every
REMINDER_CHECK_INTERVAL seconds it collects the reminders falling due in the
next REMINDER_WINDOW_MINUTES, logs one digest per user, then reschedules
recurring reminders and deletes one-time ones.

Delivery (mail) is not implemented; the digest only goes to the log.
"""
import asyncio
import logging
import traceback
from collections import defaultdict
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import async_sessionmaker

from bang.config import settings
from bang.database import async_session
from bang.models.reminder import Reminder
from bang.models.user import User
from bang.services.reminder_timing import next_occurrence

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # Some backends hand back naive datetimes for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def process_due_reminders(
    session_factory: async_sessionmaker = async_session,
    now: datetime | None = None,
) -> dict[int, list[str]]:
    """Fire every reminder due before now + window.

    Returns {user_id: [reminder titles]} for the digests that were sent.
    """
    now = now or datetime.now(timezone.utc)
    cutoff = now + timedelta(minutes=settings.REMINDER_WINDOW_MINUTES)
    digests: dict[int, list[str]] = defaultdict(list)

    async with session_factory() as db:
        result = await db.execute(
            select(Reminder)
            .where(Reminder.processed == False, Reminder.due_at <= cutoff)  # noqa: E712
            .order_by(Reminder.user_id, Reminder.due_at)
        )
        reminders = result.scalars().all()
        if not reminders:
            return {}

        user_ids = {r.user_id for r in reminders}
        users = {
            u.id: u
            for u in (await db.execute(select(User).where(User.id.in_(user_ids)))).scalars().all()
        }

        for reminder in reminders:
            digests[reminder.user_id].append(reminder.title)
            if reminder.reminder_type == "recurring":
                due = next_occurrence(_as_utc(reminder.due_at), reminder.frequency)
                if due is None:
                    logger.warning(
                        f"Reminder {reminder.id} has unknown frequency '{reminder.frequency}', marking processed"
                    )
                    reminder.processed = True
                    continue
                # Catch up past the window so a stale reminder fires once, not once per period
                while due <= cutoff:
                    due = next_occurrence(due, reminder.frequency)
                reminder.due_at = due
                reminder.processed = False
            else:
                await db.delete(reminder)

        await db.commit()

    for user_id, titles in digests.items():
        user = users.get(user_id)
        recipient = user.email if user else f"user {user_id}"
        logger.info(f"Reminder digest for {recipient}: {len(titles)} due - " + "; ".join(titles))
    return dict(digests)


async def reminder_loop(session_factory: async_sessionmaker = async_session):
    """Main reminder loop. Checks for due reminders every REMINDER_CHECK_INTERVAL seconds."""
    logger.info("Reminder worker started")
    while True:
        try:
            digests = await process_due_reminders(session_factory)
            if digests:
                logger.info(f"Sent {len(digests)} reminder digest(s)")
        except Exception as e:
            logger.error(f"Reminder loop error: {e}")
            logger.error(traceback.format_exc())

        await asyncio.sleep(settings.REMINDER_CHECK_INTERVAL)
