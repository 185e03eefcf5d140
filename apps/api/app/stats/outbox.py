"""Execution of staged statistics recalculation tasks.

Tasks are processed inline right after the mutation that staged them
commits. A failing task never propagates: it is rolled back, recorded on
the row, and handed to the rq ``stats`` queue; whatever is still pending is
drained later by the outbox processor and the hourly cron.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.common.models import StatsRecalcTask, utcnow
from app.core.config import settings
from app.core.metrics import emit_business_metric
from app.stats import hooks, recalculator

logger = logging.getLogger(__name__)


def execute_task(db: Session, task: StatsRecalcTask) -> Any:
    """Run the recalculation for one task without committing."""
    if task.kind == hooks.MEMBERSHIP_COUNT:
        return recalculator.recalculate_membership_count(db, task.church_id, commit=False)
    if task.kind == hooks.ROLE_COUNTS:
        return recalculator.recalculate_role_counts(db, task.church_id, commit=False)
    if task.kind == hooks.AVG_WEEKLY_ATTENDANCE:
        return recalculator.recalculate_avg_weekly_attendance(db, task.church_id, commit=False)
    if task.kind == hooks.FAITH_DECISIONS:
        return recalculator.recalculate_faith_decisions(
            db, task.church_id, task.year, commit=False
        )
    raise ValueError(f"Unknown stats task kind: {task.kind}")


def _record_failure(db: Session, task_id: int, error: Exception) -> int:
    task = db.get(StatsRecalcTask, task_id)
    if task is None:
        return 0
    task.attempts += 1
    task.last_error = str(error)[:500]
    if task.attempts >= settings.max_stats_task_attempts:
        task.state = "failed"
        logger.error(
            f"Stats task {task_id} ({task.kind}, church {task.church_id}) "
            f"failed permanently after {task.attempts} attempts"
        )
    db.commit()
    return task.attempts


def _enqueue_retry(task_id: int, attempts: int) -> None:
    from app.jobs.queue import stats_queue

    try:
        stats_queue.enqueue(
            "app.jobs.tasks.process_stats_task",
            task_id,
            job_id=f"stats-{task_id}-{attempts}",
        )
    except Exception:
        # If queueing fails the task stays pending for the outbox processor
        # and the hourly cron
        logger.info(f"Could not enqueue stats task {task_id}; left pending")


def run_task(db: Session, task_id: int) -> tuple[bool, Any]:
    """Process one pending task. Returns (succeeded, value)."""
    task = db.get(StatsRecalcTask, task_id)
    if task is None or task.state != "pending":
        return task is not None, None

    kind, church_id = task.kind, task.church_id
    try:
        value = execute_task(db, task)
        task.attempts += 1
        task.state = "done"
        task.processed_at = utcnow()
        task.last_error = None
        db.commit()
        return True, value
    except Exception as e:
        db.rollback()
        logger.warning(
            f"Stats recalculation {kind} for church {church_id} failed: {e}",
            exc_info=True,
        )
        emit_business_metric(
            "StatsRecalculationFailed",
            1,
            category="stats",
            church_id=church_id,
            kind=kind,
        )
        attempts = 0
        try:
            attempts = _record_failure(db, task_id, e)
        except Exception:
            db.rollback()
            logger.exception(f"Could not record failure of stats task {task_id}")
        if attempts and attempts < settings.max_stats_task_attempts:
            _enqueue_retry(task_id, attempts)
        return False, None


def run_tasks(db: Session, tasks: Iterable[StatsRecalcTask]) -> dict[str, Any]:
    """Process freshly committed tasks best-effort.

    Returns the new values keyed by task kind (for a single church, which
    is how the routes use it) so responses can include them.
    """
    task_ids = [task.id for task in tasks]
    results: dict[str, Any] = {}
    for task_id in task_ids:
        kind = db.get(StatsRecalcTask, task_id).kind
        succeeded, value = run_task(db, task_id)
        if succeeded and value is not None:
            results[kind] = value
    return results


def drain_pending_tasks(db: Session, batch_size: int = 100) -> int:
    """Process every pending task, oldest first. Returns how many succeeded."""
    task_ids = db.execute(
        select(StatsRecalcTask.id)
        .where(StatsRecalcTask.state == "pending")
        .order_by(StatsRecalcTask.created_at, StatsRecalcTask.id)
        .limit(batch_size)
    ).scalars().all()

    succeeded = 0
    for task_id in task_ids:
        ok, _ = run_task(db, task_id)
        succeeded += int(ok)
    if task_ids:
        logger.info(f"Drained {succeeded}/{len(task_ids)} pending stats tasks")
    return succeeded
