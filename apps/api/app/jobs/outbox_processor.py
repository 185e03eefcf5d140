"""
Stats outbox processor.

This module provides a worker that polls pending stats recalculation tasks
from the database and runs them, covering tasks whose rq retry was never
enqueued (e.g. Redis unavailable when the mutation happened).
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from app.common.db import SessionLocal
from app.stats.outbox import drain_pending_tasks

logger = logging.getLogger(__name__)


def process_stats_outbox(
    batch_size: int = 50,
    max_iterations: Optional[int] = None,
    idle_seconds: float = 5,
) -> None:
    """
    Process pending stats tasks in batches until stopped.

    Args:
        batch_size: Number of tasks to process per iteration
        max_iterations: Maximum number of iterations (None for infinite)
        idle_seconds: Wait between polls when nothing is pending
    """
    iteration = 0
    while max_iterations is None or iteration < max_iterations:
        iteration += 1
        db = SessionLocal()
        processed = 0
        try:
            processed = drain_pending_tasks(db, batch_size=batch_size)
        except Exception as e:
            logger.error(f"Error processing stats outbox: {str(e)}", exc_info=True)
            db.rollback()
        finally:
            db.close()

        if max_iterations is not None and iteration >= max_iterations:
            break
        # Back off when idle, keep going while there is a backlog
        time.sleep(1 if processed else idle_seconds)


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info("Starting stats outbox processor...")
    process_stats_outbox()
