"""
Background scheduler that runs the hourly cron inside the API process.

Every hour at minute 0 (church timezone):
  - WhatsApp reminders for churches whose notification hour is now
  - drain of pending stats recalculation tasks
  - full stats sweep over every church
"""
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from app.core.config import settings

logger = logging.getLogger(__name__)

scheduler = BackgroundScheduler(daemon=True, timezone=settings.scheduler_timezone)


def _run_hourly():
    from app.jobs.tasks import drain_stats_outbox, send_scheduled_reminders, sweep_all_churches

    try:
        send_scheduled_reminders()
    except Exception:
        logger.exception("Scheduled reminders job failed")

    try:
        drain_stats_outbox()
    except Exception:
        logger.exception("Stats outbox drain failed")

    try:
        sweep_all_churches()
    except Exception:
        logger.exception("Stats sweep failed")


def start_scheduler():
    """Start the background scheduler with the hourly job."""
    scheduler.add_job(
        _run_hourly,
        CronTrigger(minute=0, timezone=settings.scheduler_timezone),
        id="hourly",
        replace_existing=True,
        coalesce=True,
        max_instances=1,
    )
    scheduler.start()
    logger.info(f"Scheduler started (timezone {settings.scheduler_timezone})")


def shutdown_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
