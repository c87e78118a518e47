"""
Messaging Background Jobs

Scheduled maintenance for thread participants. Group and class threads
copy their membership when created; this job adds members who joined
afterwards (for example through a class assignment made outside the API).

Jobs:
- messaging_sync_thread_participants: every THREAD_SYNC_INTERVAL_MINUTES
"""

import logging

from apscheduler.triggers.interval import IntervalTrigger

from edubridge.core.config import settings
from edubridge.core.database import async_session_maker
from edubridge.core.scheduler import register_job
from edubridge.modules.messaging import service

logger = logging.getLogger(__name__)

SYNC_THREAD_PARTICIPANTS_JOB_ID = "messaging_sync_thread_participants"


async def sync_thread_participants_job() -> None:
    """Top up the participants of every group and class thread."""
    logger.info("Starting thread participant sync...")

    async with async_session_maker() as db:
        try:
            result = await service.sync_thread_participants(db)
        except Exception:
            await db.rollback()
            raise

    logger.info(
        f"Thread participant sync complete: {result['threads_checked']} thread(s) checked, "
        f"{result['participants_added']} participant(s) added, {result['failures']} failure(s)"
    )


def register_messaging_jobs() -> None:
    """Register messaging jobs with the scheduler."""
    if not settings.thread_sync_enabled:
        logger.info("Thread participant sync disabled")
        return

    register_job(
        job_id=SYNC_THREAD_PARTICIPANTS_JOB_ID,
        func=sync_thread_participants_job,
        trigger=IntervalTrigger(minutes=settings.thread_sync_interval_minutes),
    )
