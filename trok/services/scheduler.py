"""
trok/services/scheduler.py

Purpose: Background jobs

- Hourly past-due statement check
- One instance at a time; missed runs are coalesced
"""

from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from trok.core.config import settings
from trok.core.logging import get_logger
from trok.services.statement_service import check_past_due_statements

logger = get_logger(__name__)

STATEMENT_JOB_ID = "past_due_statements"

scheduler: Optional[AsyncIOScheduler] = None


async def run_statement_check():
    """Job wrapper: a failing run is logged and the schedule carries on."""
    try:
        flagged = await check_past_due_statements()
        logger.info(f"Past due statement check finished ({flagged} flagged)")
    except Exception as e:
        logger.error(f"Past due statement check failed: {e}", exc_info=True)


def start_scheduler() -> AsyncIOScheduler:
    global scheduler
    if scheduler is not None:
        return scheduler

    scheduler = AsyncIOScheduler(timezone="UTC")
    scheduler.add_job(
        run_statement_check,
        "interval",
        minutes=settings.STATEMENT_CHECK_INTERVAL_MINUTES,
        id=STATEMENT_JOB_ID,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    scheduler.start()
    logger.info(
        f"✅ Scheduler started: statement check every {settings.STATEMENT_CHECK_INTERVAL_MINUTES} min"
    )
    return scheduler


def shutdown_scheduler():
    global scheduler
    if scheduler is not None:
        scheduler.shutdown(wait=False)
        scheduler = None
        logger.info("Scheduler stopped")
