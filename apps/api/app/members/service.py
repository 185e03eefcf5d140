"""Member service layer."""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import Session

from app.auth.tenancy import (
    Principal,
    apply_tenant_filter,
    ensure_church_access,
    get_owned_or_404,
    resolve_church_id,
)
from app.common.models import (
    Church,
    Event,
    EventAttendee,
    Member,
    MinisterialPosition,
    MinuteAttendee,
    Mission,
    MotionVoter,
    WhiteField,
)
from app.common.pagination import PageParams, Pagination, paginate
from app.core.errors import BadRequestError, NotFoundError
from app.members.schemas import MemberCreateRequest, MemberUpdateRequest
from app.stats import hooks as stats_hooks
from app.stats import outbox as stats_outbox
from app.stats.recalculator import LEGACY_ROLE_LABELS

logger = logging.getLogger(__name__)


def resolve_position(db: Session, church_id: int, position_id: int) -> MinisterialPosition:
    position = db.get(MinisterialPosition, position_id)
    if position is None or position.church_id != church_id or not position.is_active:
        raise BadRequestError("Invalid ministerial position for this church")
    return position


def validate_church_role(db: Session, church_id: int, church_role: str) -> Optional[int]:
    """Check a free-text church_role; returns the matching position id, if any.

    Accepted values are an active position of the member's church or one of
    the legacy fixed labels.
    """
    position = db.execute(
        select(MinisterialPosition).where(
            MinisterialPosition.church_id == church_id,
            MinisterialPosition.name == church_role,
            MinisterialPosition.is_active.is_(True),
        )
    ).scalar_one_or_none()
    if position is not None:
        return position.id
    if church_role in LEGACY_ROLE_LABELS:
        return None
    raise BadRequestError(f"Unknown church role: {church_role}")


def _recount_events(db: Session, event_ids: set[int]) -> None:
    """Rewrite each event's counters from the attendance rows it still has."""
    for event in db.execute(select(Event).where(Event.id.in_(event_ids))).scalars():
        rows = select(func.count()).select_from(EventAttendee).where(EventAttendee.event_id == event.id)
        event.attendees_count = db.scalar(rows.where(EventAttendee.attended.is_(True)))
        event.faith_decisions = db.scalar(rows.where(EventAttendee.made_faith_decision.is_(True)))


class MemberService:
    @staticmethod
    def list_members(
        db: Session,
        principal: Principal,
        params: PageParams,
        church_id: Optional[int] = None,
        member_type: Optional[str] = None,
        church_role: Optional[str] = None,
        position_id: Optional[int] = None,
        baptized: Optional[bool] = None,
        search: Optional[str] = None,
    ) -> tuple[list[Member], Pagination]:
        stmt = apply_tenant_filter(select(Member), principal, Member.church_id)
        if church_id is not None:
            stmt = stmt.where(Member.church_id == church_id)
        if member_type:
            stmt = stmt.where(Member.member_type == member_type)
        if church_role:
            stmt = stmt.where(Member.church_role == church_role)
        if position_id is not None:
            stmt = stmt.where(Member.position_id == position_id)
        if baptized is not None:
            stmt = stmt.where(Member.baptized.is_(baptized))
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(
                    Member.first_name.ilike(pattern),
                    Member.last_name.ilike(pattern),
                    Member.email.ilike(pattern),
                )
            )
        stmt = stmt.order_by(Member.last_name, Member.first_name, Member.id)
        return paginate(db, stmt, params)

    @staticmethod
    def get_member(db: Session, principal: Principal, member_id: int) -> Member:
        return get_owned_or_404(db, Member, member_id, principal, "Member")

    @staticmethod
    def create_member(
        db: Session, principal: Principal, data: MemberCreateRequest
    ) -> tuple[Member, dict[str, Any]]:
        church_id = resolve_church_id(principal, data.church_id)
        if db.get(Church, church_id) is None:
            raise NotFoundError("Church", church_id)

        fields = data.model_dump(exclude={"church_id"})
        if data.position_id is not None:
            fields["church_role"] = resolve_position(db, church_id, data.position_id).name
        elif data.church_role:
            fields["position_id"] = validate_church_role(db, church_id, data.church_role)

        member = Member(church_id=church_id, **fields)
        db.add(member)
        db.flush()

        tasks = stats_hooks.member_created(db, member)
        db.commit()
        db.refresh(member)
        logger.info(f"Created member {member.id} in church {church_id}")

        stats = stats_outbox.run_tasks(db, tasks)
        db.refresh(member)
        return member, stats

    @staticmethod
    def update_member(
        db: Session, principal: Principal, member_id: int, data: MemberUpdateRequest
    ) -> tuple[Member, dict[str, Any]]:
        member = get_owned_or_404(db, Member, member_id, principal, "Member")
        previous_church_id = member.church_id
        previous_role = member.church_role

        fields = data.model_dump(exclude_unset=True)

        new_church_id = fields.pop("church_id", None) or member.church_id
        if new_church_id != member.church_id:
            ensure_church_access(principal, new_church_id)
            if db.get(Church, new_church_id) is None:
                raise NotFoundError("Church", new_church_id)

        for required in ("first_name", "last_name", "baptized", "member_type"):
            if required in fields and fields[required] is None:
                fields.pop(required)

        if "position_id" in fields:
            if fields["position_id"] is None:
                fields["church_role"] = None
            else:
                position = resolve_position(db, new_church_id, fields["position_id"])
                fields["church_role"] = position.name
        elif "church_role" in fields:
            fields["position_id"] = (
                validate_church_role(db, new_church_id, fields["church_role"])
                if fields["church_role"]
                else None
            )
        elif new_church_id != member.church_id and member.position_id is not None:
            # Positions are per church; a moved member keeps only a legacy label
            fields["position_id"] = None
            if member.church_role not in LEGACY_ROLE_LABELS:
                fields["church_role"] = None

        member.church_id = new_church_id
        for key, value in fields.items():
            setattr(member, key, value)
        db.flush()

        tasks = stats_hooks.member_updated(db, member, previous_church_id, previous_role)
        db.commit()
        logger.info(f"Updated member {member.id}")

        stats = stats_outbox.run_tasks(db, tasks)
        db.refresh(member)
        return member, stats

    @staticmethod
    def delete_member(db: Session, principal: Principal, member_id: int) -> dict[str, Any]:
        member = get_owned_or_404(db, Member, member_id, principal, "Member")

        event_ids = set(
            db.execute(
                select(EventAttendee.event_id).where(EventAttendee.member_id == member.id)
            ).scalars()
        )
        db.execute(delete(EventAttendee).where(EventAttendee.member_id == member.id))
        db.execute(delete(MinuteAttendee).where(MinuteAttendee.member_id == member.id))
        db.execute(delete(MotionVoter).where(MotionVoter.member_id == member.id))
        for column in (Event.preacher_id, Event.worship_leader_id, Event.singer_id):
            db.execute(update(Event).where(column == member.id).values({column.key: None}))
        for model in (WhiteField, Mission):
            db.execute(
                update(model)
                .where(model.responsible_id == member.id)
                .values(responsible_id=None)
            )
        if event_ids:
            _recount_events(db, event_ids)

        tasks = stats_hooks.member_deleted(db, member, had_attendance=bool(event_ids))
        db.delete(member)
        db.commit()
        logger.info(f"Deleted member {member_id}; recounted {len(event_ids)} event(s)")

        return stats_outbox.run_tasks(db, tasks)
