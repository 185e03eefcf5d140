"""Recompute the derived counters stored on each church.

Every function recomputes its fields from the current child rows (never
incrementally), persists them, and returns the new value. Calling any of
them twice without an intervening mutation stores the same value.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.common.models import Church, Event, EventAttendee, Member, WeeklyAttendance
from app.core.errors import NotFoundError
from app.stats import clock

logger = logging.getLogger(__name__)

# church_role labels counted into the four ministerial counters
ROLE_LABEL_FIELDS = {
    "Predicador Ordenado": "ordained_preachers",
    "Predicador No Ordenado": "unordained_preachers",
    "Diácono Ordenado": "ordained_deacons",
    "Diácono No Ordenado": "unordained_deacons",
}
LEGACY_ROLE_LABELS = tuple(ROLE_LABEL_FIELDS)


def _get_church(db: Session, church_id: int) -> Church:
    church = db.get(Church, church_id)
    if church is None:
        raise NotFoundError("Church", church_id)
    return church


def _persist(db: Session, commit: bool) -> None:
    if commit:
        db.commit()
    else:
        db.flush()


def rounded_mean(total: int, count: int) -> int:
    """Mean rounded to the nearest integer, halves rounded up.

    Counts are non-negative, so this is also round-half-away-from-zero:
    [10, 11] -> 11, [1, 2] -> 2. Zero rows give 0.
    """
    if not count:
        return 0
    mean = Decimal(int(total)) / Decimal(int(count))
    return int(mean.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def recalculate_faith_decisions(
    db: Session,
    church_id: int,
    year: Optional[int] = None,
    commit: bool = True,
) -> int:
    """Count faith decisions on the church's events starting within ``year``."""
    church = _get_church(db, church_id)
    year = year or clock.current_year()
    start = datetime(year, 1, 1)
    end = datetime(year + 1, 1, 1)

    total = db.execute(
        select(func.count(EventAttendee.id))
        .join(Event, Event.id == EventAttendee.event_id)
        .where(
            Event.church_id == church_id,
            Event.start_date >= start,
            Event.start_date < end,
            EventAttendee.made_faith_decision.is_(True),
        )
    ).scalar_one()

    church.faith_decisions_year = total
    church.faith_decisions_ref_year = year
    _persist(db, commit)

    logger.info(f"Church {church_id}: faith_decisions_year={total} ({year})")
    return total


def recalculate_avg_weekly_attendance(
    db: Session, church_id: int, commit: bool = True
) -> int:
    church = _get_church(db, church_id)

    total, rows = db.execute(
        select(
            func.coalesce(func.sum(WeeklyAttendance.attendance_count), 0),
            func.count(WeeklyAttendance.id),
        ).where(WeeklyAttendance.church_id == church_id)
    ).one()

    average = rounded_mean(total, rows)
    church.avg_weekly_attendance = average
    _persist(db, commit)

    logger.info(f"Church {church_id}: avg_weekly_attendance={average} over {rows} weeks")
    return average


def recalculate_role_counts(
    db: Session, church_id: int, commit: bool = True
) -> dict[str, int]:
    """Count members per ministerial label and write all four counters."""
    church = _get_church(db, church_id)

    rows = db.execute(
        select(Member.church_role, func.count(Member.id))
        .where(Member.church_id == church_id, Member.church_role.is_not(None))
        .group_by(Member.church_role)
    ).all()
    by_label = {label: count for label, count in rows}

    counts = {
        field: by_label.get(label, 0) for label, field in ROLE_LABEL_FIELDS.items()
    }
    for field, value in counts.items():
        setattr(church, field, value)
    _persist(db, commit)

    logger.info(f"Church {church_id}: role counts {counts}")
    return counts


def recalculate_membership_count(
    db: Session, church_id: int, commit: bool = True
) -> int:
    church = _get_church(db, church_id)

    total = db.execute(
        select(func.count(Member.id)).where(Member.church_id == church_id)
    ).scalar_one()

    church.membership_count = total
    _persist(db, commit)

    logger.info(f"Church {church_id}: membership_count={total}")
    return total


def recalculate_all(
    db: Session, church_id: int, year: Optional[int] = None
) -> dict:
    """Recompute every derived field of one church in a single commit."""
    result = {
        "membership_count": recalculate_membership_count(db, church_id, commit=False),
        "avg_weekly_attendance": recalculate_avg_weekly_attendance(db, church_id, commit=False),
        "faith_decisions_year": recalculate_faith_decisions(db, church_id, year, commit=False),
        **recalculate_role_counts(db, church_id, commit=False),
    }
    db.commit()
    return result


def recalculate_every_church(db: Session) -> int:
    """Full sweep over every church; returns how many were recomputed.

    A failing church is logged and skipped so the rest still heal.
    """
    church_ids = db.execute(select(Church.id).order_by(Church.id)).scalars().all()
    done = 0
    for church_id in church_ids:
        try:
            recalculate_all(db, church_id)
            done += 1
        except Exception:
            db.rollback()
            logger.exception(f"Stats sweep failed for church {church_id}")
    logger.info(f"Stats sweep recomputed {done}/{len(church_ids)} churches")
    return done
