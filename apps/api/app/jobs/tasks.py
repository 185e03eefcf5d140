"""Background job tasks for stats recalculation and WhatsApp reminders."""

from __future__ import annotations

import logging
from datetime import timedelta

from app.common.db import SessionLocal
from app.core.config import settings
from app.stats import outbox, recalculator
from app.stats.clock import now_local

logger = logging.getLogger(__name__)


def process_stats_task(task_id: int) -> bool:
    """
    Process a single stats recalculation task from the outbox.

    Args:
        task_id: StatsRecalcTask id

    Returns:
        True if the recalculation succeeded, False otherwise
    """
    db = SessionLocal()
    try:
        succeeded, _ = outbox.run_task(db, task_id)
        return succeeded
    except Exception as e:
        logger.error(f"Failed to process stats task {task_id}: {str(e)}", exc_info=True)
        return False
    finally:
        db.close()


def drain_stats_outbox(batch_size: int = 100) -> int:
    """Process all pending stats tasks. Returns how many succeeded."""
    db = SessionLocal()
    try:
        return outbox.drain_pending_tasks(db, batch_size=batch_size)
    finally:
        db.close()


def sweep_all_churches() -> int:
    """Recompute every derived church field; the consistency backstop."""
    db = SessionLocal()
    try:
        return recalculator.recalculate_every_church(db)
    finally:
        db.close()


def send_scheduled_reminders() -> dict:
    """
    Send WhatsApp reminders for churches whose configured hour is now.

    ``notification_day_before_hour`` sends "reminder" messages about
    tomorrow's cultos; ``notification_same_day_hour`` sends "today" messages.

    Returns:
        Summary keyed by church id
    """
    from app.notifications.service import NotificationService

    if not settings.whatsapp_configured:
        logger.info("WhatsApp not configured; skipping scheduled reminders")
        return {}

    now = now_local()
    db = SessionLocal()
    summaries: dict[int, list[dict]] = {}
    try:
        for church, message_type in NotificationService.churches_due_at(db, now.hour):
            target_date = now.date() + timedelta(days=1) if message_type == "reminder" else now.date()
            try:
                summary = NotificationService.process_reminders_for_date(
                    db, church.id, target_date, message_type
                )
                summaries.setdefault(church.id, []).append(summary)
            except Exception as e:
                logger.error(
                    f"Scheduled {message_type} reminders failed for church {church.id}: {str(e)}",
                    exc_info=True,
                )
        return summaries
    finally:
        db.close()
