"""Redis Queue setup and connection."""

from __future__ import annotations

import redis
from rq import Queue

from app.core.config import settings


def get_redis_connection() -> redis.Redis:
    """Get Redis connection for RQ."""
    return redis.from_url(settings.redis_url)


def get_queue(name: str = "default") -> Queue:
    """
    Get RQ queue instance.

    Args:
        name: Queue name (stats)

    Returns:
        RQ Queue instance
    """
    return Queue(name, connection=get_redis_connection())


# Pre-configured queue; redis.from_url does not connect until first use
stats_queue = Queue("stats", connection=get_redis_connection())
