"""Background job processing module."""

from app.jobs.queue import get_queue
from app.jobs.tasks import (
    drain_stats_outbox,
    process_stats_task,
    send_scheduled_reminders,
    sweep_all_churches,
)

__all__ = [
    "get_queue",
    "drain_stats_outbox",
    "process_stats_task",
    "send_scheduled_reminders",
    "sweep_all_churches",
]
