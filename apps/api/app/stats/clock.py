"""Local wall clock used for 'current year' and reminder scheduling."""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from app.core.config import settings


def now_local() -> datetime:
    """Naive local time in the configured church timezone."""
    return datetime.now(ZoneInfo(settings.scheduler_timezone)).replace(tzinfo=None)


def current_year() -> int:
    return now_local().year
