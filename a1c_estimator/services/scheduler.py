"""Background job scheduler.

APScheduler-based scheduler for the rolling A1C estimate job.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from a1c_estimator.config import settings
from a1c_estimator.database import get_db_session
from a1c_estimator.logging_config import get_logger
from a1c_estimator.services import store
from a1c_estimator.services.estimates import recalculate_user_estimate

logger = get_logger(__name__)

# Global scheduler instance
scheduler: AsyncIOScheduler | None = None


async def recalculate_all_user_estimates() -> None:
    """Refresh the rolling A1C estimate for every user.

    Each user is processed in its own session so one failure does not stop
    the batch.
    """
    logger.info("Starting scheduled A1C estimate recalculation")

    async with get_db_session() as db:
        user_ids = await store.list_user_ids(db)

    if not user_ids:
        logger.info("No users to recalculate")
        return

    success_count = 0
    error_count = 0

    for user_id in user_ids:
        try:
            async with get_db_session() as user_db:
                await recalculate_user_estimate(
                    user_db,
                    user_id,
                    window_days=settings.a1c_window_days,
                )
            success_count += 1
        except Exception as e:
            logger.error(
                "Unexpected error in scheduled A1C recalculation",
                user_id=str(user_id),
                error=str(e),
            )
            error_count += 1

    logger.info(
        "Scheduled A1C estimate recalculation completed",
        success_count=success_count,
        error_count=error_count,
    )


def start_scheduler() -> AsyncIOScheduler:
    """Start the background job scheduler.

    Returns:
        The started scheduler instance
    """
    global scheduler

    if scheduler is not None:
        logger.warning("Scheduler already running")
        return scheduler

    scheduler = AsyncIOScheduler()

    if settings.a1c_recalc_enabled:
        scheduler.add_job(
            recalculate_all_user_estimates,
            trigger=IntervalTrigger(hours=settings.a1c_recalc_interval_hours),
            id="a1c_recalculation",
            name="Rolling A1C Estimate",
            replace_existing=True,
            max_instances=1,
        )
        logger.info(
            "Scheduled A1C recalculation job",
            interval_hours=settings.a1c_recalc_interval_hours,
            window_days=settings.a1c_window_days,
        )

    scheduler.start()
    logger.info("Background scheduler started")

    return scheduler


def stop_scheduler() -> None:
    """Stop the background job scheduler."""
    global scheduler

    if scheduler is not None:
        scheduler.shutdown(wait=False)
        scheduler = None
        logger.info("Background scheduler stopped")


def get_scheduler() -> AsyncIOScheduler | None:
    """Get the current scheduler instance, or None if not started."""
    return scheduler
