"""Mutation hooks: which recalculations each write triggers.

Hooks only stage ``StatsRecalcTask`` rows on the caller's session, so the
tasks commit atomically with the mutation that caused them. The caller
commits and then hands the returned tasks to ``app.stats.outbox.run_tasks``.

    | Mutation                         | Recalculations                               |
    |----------------------------------|----------------------------------------------|
    | member created                   | membership; roles if church_role set         |
    | member updated, role changed     | roles on current church; if the church also  |
    |                                  | changed, roles + membership on old and new   |
    | member updated, church changed   | membership on old and new (roles too when    |
    |                                  | the member carries a church_role)            |
    | member deleted                   | membership; roles if it had a church_role;   |
    |                                  | faith decisions if it was on any roster      |
    | event deleted                    | faith decisions for the current year         |
    | attendee roster replaced         | faith decisions for the current year         |
    | weekly attendance c/u/d          | average weekly attendance                    |
    | position renamed/deleted         | roles                                        |
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from app.common.models import Event, Member, StatsRecalcTask

MEMBERSHIP_COUNT = "membership_count"
ROLE_COUNTS = "role_counts"
AVG_WEEKLY_ATTENDANCE = "avg_weekly_attendance"
FAITH_DECISIONS = "faith_decisions"


class _TaskBatch:
    """Stage tasks once per (church, kind, year)."""

    def __init__(self, db: Session):
        self.db = db
        self.tasks: list[StatsRecalcTask] = []
        self._seen: set[tuple[int, str, Optional[int]]] = set()

    def add(self, church_id: Optional[int], kind: str, year: Optional[int] = None) -> None:
        if church_id is None:
            return
        key = (church_id, kind, year)
        if key in self._seen:
            return
        self._seen.add(key)
        task = StatsRecalcTask(church_id=church_id, kind=kind, year=year, state="pending")
        self.db.add(task)
        self.tasks.append(task)


def member_created(db: Session, member: Member) -> list[StatsRecalcTask]:
    batch = _TaskBatch(db)
    batch.add(member.church_id, MEMBERSHIP_COUNT)
    if member.church_role:
        batch.add(member.church_id, ROLE_COUNTS)
    return batch.tasks


def member_updated(
    db: Session,
    member: Member,
    previous_church_id: int,
    previous_role: Optional[str],
) -> list[StatsRecalcTask]:
    batch = _TaskBatch(db)
    role_changed = previous_role != member.church_role
    church_changed = previous_church_id != member.church_id

    if church_changed:
        for church_id in (previous_church_id, member.church_id):
            batch.add(church_id, MEMBERSHIP_COUNT)
            if role_changed or member.church_role:
                batch.add(church_id, ROLE_COUNTS)
    elif role_changed:
        batch.add(member.church_id, ROLE_COUNTS)
    return batch.tasks


def member_deleted(db: Session, member: Member, had_attendance: bool = False) -> list[StatsRecalcTask]:
    batch = _TaskBatch(db)
    batch.add(member.church_id, MEMBERSHIP_COUNT)
    if member.church_role:
        batch.add(member.church_id, ROLE_COUNTS)
    if had_attendance:
        batch.add(member.church_id, FAITH_DECISIONS)
    return batch.tasks


def event_deleted(db: Session, event: Event) -> list[StatsRecalcTask]:
    batch = _TaskBatch(db)
    batch.add(event.church_id, FAITH_DECISIONS)
    return batch.tasks


def roster_replaced(db: Session, event: Event) -> list[StatsRecalcTask]:
    batch = _TaskBatch(db)
    batch.add(event.church_id, FAITH_DECISIONS)
    return batch.tasks


def weekly_attendance_changed(db: Session, church_id: int) -> list[StatsRecalcTask]:
    batch = _TaskBatch(db)
    batch.add(church_id, AVG_WEEKLY_ATTENDANCE)
    return batch.tasks


def position_roles_changed(db: Session, church_id: int) -> list[StatsRecalcTask]:
    batch = _TaskBatch(db)
    batch.add(church_id, ROLE_COUNTS)
    return batch.tasks
