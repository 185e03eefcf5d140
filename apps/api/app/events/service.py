"""Event service layer: CRUD, attendance rolls and calendars."""

from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Optional

from sqlalchemy import and_, delete, insert, or_, select
from sqlalchemy.orm import Session

from app.auth.tenancy import (
    Principal,
    apply_tenant_filter,
    ensure_church_access,
    get_owned_or_404,
    resolve_church_id,
)
from app.common.models import CULTO, VENTAS, Church, Event, EventAttendee, Member
from app.common.pagination import PageParams, Pagination, paginate
from app.core.errors import BadRequestError, NotFoundError
from app.events.schemas import AttendeeEntry, EventCreateRequest, EventUpdateRequest
from app.stats import hooks as stats_hooks
from app.stats import outbox as stats_outbox

logger = logging.getLogger(__name__)

ROLE_FIELDS = ("preacher_id", "worship_leader_id", "singer_id")


def _check_role_members(db: Session, church_id: int, fields: dict[str, Any]) -> None:
    """Role assignees must be members of the event's church."""
    ids = {fields[f] for f in ROLE_FIELDS if fields.get(f) is not None}
    if not ids:
        return
    found = set(
        db.execute(
            select(Member.id).where(Member.id.in_(ids), Member.church_id == church_id)
        ).scalars()
    )
    missing = ids - found
    if missing:
        raise BadRequestError(
            "Role assignees must be members of the event's church",
            details={"member_ids": sorted(missing)},
        )


def dedupe_roster(entries: Iterable[AttendeeEntry]) -> list[AttendeeEntry]:
    """One entry per member; a later entry for the same member wins."""
    by_member: dict[int, AttendeeEntry] = {}
    for entry in entries:
        by_member.pop(entry.member_id, None)
        by_member[entry.member_id] = entry
    return list(by_member.values())


def insert_roster(db: Session, event_id: int, entries: list[AttendeeEntry]) -> None:
    db.execute(
        insert(EventAttendee),
        [
            {
                "event_id": event_id,
                "member_id": entry.member_id,
                "attended": entry.attended,
                "made_faith_decision": entry.made_faith_decision,
                "notes": entry.notes,
            }
            for entry in entries
        ],
    )


class EventService:
    @staticmethod
    def list_events(
        db: Session,
        principal: Principal,
        params: PageParams,
        church_id: Optional[int] = None,
        event_type: Optional[str] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> tuple[list[Event], Pagination]:
        stmt = apply_tenant_filter(select(Event), principal, Event.church_id)
        if church_id is not None:
            stmt = stmt.where(Event.church_id == church_id)
        if event_type:
            stmt = stmt.where(Event.event_type == event_type)
        if start is not None:
            stmt = stmt.where(Event.start_date >= datetime.combine(start, time.min))
        if end is not None:
            stmt = stmt.where(Event.start_date < datetime.combine(end + timedelta(days=1), time.min))
        stmt = stmt.order_by(Event.start_date.desc(), Event.id.desc())
        return paginate(db, stmt, params)

    @staticmethod
    def get_event_detail(db: Session, principal: Principal, event_id: int) -> dict[str, Any]:
        event = get_owned_or_404(db, Event, event_id, principal, "Event")

        rows = db.execute(
            select(EventAttendee, Member)
            .join(Member, Member.id == EventAttendee.member_id)
            .where(EventAttendee.event_id == event.id)
            .order_by(Member.last_name, Member.first_name)
        ).all()
        attendees = [
            {
                "id": attendee.id,
                "member_id": attendee.member_id,
                "attended": attendee.attended,
                "made_faith_decision": attendee.made_faith_decision,
                "notes": attendee.notes,
                "member": member,
            }
            for attendee, member in rows
        ]

        return {
            "event": event,
            "attendees": attendees,
            "preacher": db.get(Member, event.preacher_id) if event.preacher_id else None,
            "worship_leader": db.get(Member, event.worship_leader_id) if event.worship_leader_id else None,
            "singer": db.get(Member, event.singer_id) if event.singer_id else None,
        }

    @staticmethod
    def create_event(db: Session, principal: Principal, data: EventCreateRequest) -> Event:
        church_id = resolve_church_id(principal, data.church_id)
        if db.get(Church, church_id) is None:
            raise NotFoundError("Church", church_id)

        fields = data.model_dump(exclude={"church_id"})
        if fields["event_type"] != CULTO:
            for role_field in ROLE_FIELDS:
                fields[role_field] = None
        _check_role_members(db, church_id, fields)

        event = Event(church_id=church_id, created_by=principal.id, **fields)
        db.add(event)
        db.commit()
        db.refresh(event)
        logger.info(f"Created event {event.id} ({event.event_type}) in church {church_id}")
        return event

    @staticmethod
    def update_event(
        db: Session, principal: Principal, event_id: int, data: EventUpdateRequest
    ) -> Event:
        event = get_owned_or_404(db, Event, event_id, principal, "Event")
        fields = data.model_dump(exclude_unset=True)
        for required in ("title", "event_type", "start_date"):
            if required in fields and fields[required] is None:
                fields.pop(required)

        event_type = fields.get("event_type", event.event_type)
        if event_type != CULTO:
            # Role assignments only exist for cultos
            for role_field in ROLE_FIELDS:
                fields[role_field] = None
        _check_role_members(db, event.church_id, fields)

        start = fields.get("start_date", event.start_date)
        end = fields.get("end_date", event.end_date)
        if end is not None and end < start:
            raise BadRequestError("end_date must not be before start_date")

        for key, value in fields.items():
            setattr(event, key, value)
        db.commit()
        db.refresh(event)
        logger.info(f"Updated event {event.id}")
        return event

    @staticmethod
    def delete_event(db: Session, principal: Principal, event_id: int) -> dict[str, Any]:
        event = get_owned_or_404(db, Event, event_id, principal, "Event")

        db.execute(delete(EventAttendee).where(EventAttendee.event_id == event.id))
        tasks = stats_hooks.event_deleted(db, event)
        db.delete(event)
        db.commit()
        logger.info(f"Deleted event {event_id}")

        return stats_outbox.run_tasks(db, tasks)

    @staticmethod
    def replace_attendees(
        db: Session,
        principal: Principal,
        event_id: int,
        entries: list[AttendeeEntry],
    ) -> dict[str, Any]:
        """
        Replace an event's attendance roll in one transaction.

        Entries are deduplicated by member (last one wins). The event's own
        counters are written in the same transaction; the church's yearly
        faith-decision count is recomputed afterwards, best-effort.

        Returns:
            {"attendees_count", "faith_decisions", "stats"}
        """
        event = db.get(Event, event_id)
        if event is None:
            raise NotFoundError("Event", event_id)
        if not entries:
            raise BadRequestError("At least one attendee is required")
        ensure_church_access(principal, event.church_id)

        roster = dedupe_roster(entries)
        member_ids = {entry.member_id for entry in roster}
        valid = set(
            db.execute(
                select(Member.id).where(
                    Member.id.in_(member_ids), Member.church_id == event.church_id
                )
            ).scalars()
        )
        invalid = member_ids - valid
        if invalid:
            raise BadRequestError(
                "Attendees must be members of the event's church",
                details={"member_ids": sorted(invalid)},
            )

        try:
            db.execute(delete(EventAttendee).where(EventAttendee.event_id == event.id))
            insert_roster(db, event.id, roster)
            event.attendees_count = sum(1 for entry in roster if entry.attended)
            event.faith_decisions = sum(1 for entry in roster if entry.made_faith_decision)
            tasks = stats_hooks.roster_replaced(db, event)
            db.commit()
        except Exception:
            db.rollback()
            logger.error(f"Roster replace failed for event {event_id}; rolled back", exc_info=True)
            raise

        attendees_count, faith_decisions = event.attendees_count, event.faith_decisions
        logger.info(
            f"Replaced roster of event {event_id}: {attendees_count} attendees, "
            f"{faith_decisions} faith decisions"
        )
        stats = stats_outbox.run_tasks(db, tasks)
        return {
            "attendees_count": attendees_count,
            "faith_decisions": faith_decisions,
            "stats": stats,
        }

    @staticmethod
    def events_for_month(
        db: Session, principal: Principal, year: int, month: int
    ) -> list[Event]:
        """Events overlapping the month.

        An event overlaps when it starts before the month ends and either ends
        after the month starts or has no end and starts within the month.
        """
        month_start = datetime(year, month, 1)
        month_end = datetime(year, month, calendar.monthrange(year, month)[1], 23, 59, 59)
        stmt = select(Event).where(
            Event.start_date <= month_end,
            or_(
                Event.end_date >= month_start,
                and_(Event.end_date.is_(None), Event.start_date >= month_start),
            ),
        )
        stmt = apply_tenant_filter(stmt, principal, Event.church_id)
        return list(db.execute(stmt.order_by(Event.start_date)).scalars().all())

    @staticmethod
    def sales_events_for_year(db: Session, principal: Principal, year: int) -> list[Event]:
        stmt = select(Event).where(
            Event.event_type == VENTAS,
            Event.start_date >= datetime(year, 1, 1),
            Event.start_date < datetime(year + 1, 1, 1),
        )
        stmt = apply_tenant_filter(stmt, principal, Event.church_id)
        return list(db.execute(stmt.order_by(Event.start_date)).scalars().all())

    @staticmethod
    def role_first_names(db: Session, events: Iterable[Event]) -> dict[int, str]:
        ids = {
            getattr(event, field)
            for event in events
            if event.event_type == CULTO
            for field in ROLE_FIELDS
            if getattr(event, field)
        }
        if not ids:
            return {}
        rows = db.execute(select(Member.id, Member.first_name).where(Member.id.in_(ids))).all()
        return {member_id: first_name for member_id, first_name in rows}

    @staticmethod
    def calendar_church_name(db: Session, principal: Principal) -> Optional[str]:
        if principal.church_id is None:
            return None
        church = db.get(Church, principal.church_id)
        return church.name if church else None
