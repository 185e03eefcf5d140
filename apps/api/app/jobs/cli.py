"""Command-line interface for job workers.

    python -m app.jobs.cli worker [queue ...]   # rq worker (default: stats default)
    python -m app.jobs.cli outbox               # poll pending stats tasks
    python -m app.jobs.cli sweep                # recompute every church once
"""

import logging
import sys

from rq import Worker

from app.jobs.queue import get_redis_connection

logger = logging.getLogger(__name__)


def run_worker(queues: list[str] | None = None):
    """
    Run an RQ worker for processing background jobs.

    Args:
        queues: List of queue names to process (default: ['stats', 'default'])
    """
    if queues is None:
        queues = ["stats", "default"]

    redis_conn = get_redis_connection()
    worker = Worker(queues, connection=redis_conn)
    worker.work()


def main(argv: list[str]) -> int:
    command = argv[0] if argv else "worker"
    if command == "worker":
        run_worker(argv[1:] or None)
    elif command == "outbox":
        from app.jobs.outbox_processor import process_stats_outbox

        process_stats_outbox()
    elif command == "sweep":
        from app.jobs.tasks import drain_stats_outbox, sweep_all_churches

        drain_stats_outbox()
        done = sweep_all_churches()
        logger.info(f"Sweep finished for {done} churches")
    else:
        print(f"Unknown command: {command}", file=sys.stderr)
        print(__doc__, file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    sys.exit(main(sys.argv[1:]))
