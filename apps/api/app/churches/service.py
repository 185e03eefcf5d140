"""Church service layer, including white fields, missions and stats recalculation."""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from app.auth.tenancy import Principal, apply_tenant_filter, get_owned_or_404
from app.churches.schemas import (
    ChurchCreateRequest,
    ChurchUpdateRequest,
    MissionCreateRequest,
    MissionUpdateRequest,
    WhiteFieldCreateRequest,
    WhiteFieldUpdateRequest,
)
from app.common import uploads
from app.common.models import (
    DERIVED_CHURCH_FIELDS,
    Church,
    Event,
    EventAttendee,
    Member,
    MinisterialPosition,
    Minute,
    MinuteAttendee,
    MinuteFile,
    Mission,
    Motion,
    MotionVoter,
    StatsRecalcTask,
    User,
    WeeklyAttendance,
    WhiteField,
)
from app.core.errors import BadRequestError, NotFoundError
from app.stats import recalculator

logger = logging.getLogger(__name__)


def strip_derived_fields(payload: dict[str, Any]) -> dict[str, Any]:
    """Drop the counters owned by the stats recalculator."""
    return {k: v for k, v in payload.items() if k not in DERIVED_CHURCH_FIELDS}


def _get_church(db: Session, principal: Principal, church_id: int) -> Church:
    return get_owned_or_404(db, Church, church_id, principal, "Church", owner="id")


def _check_responsible(db: Session, church_id: int, responsible_id: Optional[int]) -> None:
    if responsible_id is None:
        return
    member = db.get(Member, responsible_id)
    if member is None or member.church_id != church_id:
        raise BadRequestError("The responsible must be a member of this church")


def _outreach_dict(item: WhiteField | Mission, responsibles: dict[int, Member]) -> dict[str, Any]:
    return {
        "id": item.id,
        "church_id": item.church_id,
        "name": item.name,
        "description": item.description,
        "responsible_id": item.responsible_id,
        "responsible_name": item.responsible_name,
        "responsible_phone": item.responsible_phone,
        "is_active": item.is_active,
        "responsible": responsibles.get(item.responsible_id),
        "created_at": item.created_at,
    }


# White fields and missions share their columns and their rules
OutreachModel = type[WhiteField] | type[Mission]

# Columns a partial update cannot null
NON_NULLABLE_UPDATES = ("name", "is_active")


def _create_outreach(
    db: Session, principal: Principal, model: OutreachModel, church_id: int, data
) -> WhiteField | Mission:
    church = _get_church(db, principal, church_id)
    _check_responsible(db, church.id, data.responsible_id)
    item = model(church_id=church.id, **data.model_dump())
    db.add(item)
    db.commit()
    db.refresh(item)
    logger.info(f"Created {model.__tablename__} row {item.id} for church {church.id}")
    return item


def _get_outreach(
    db: Session,
    principal: Principal,
    model: OutreachModel,
    label: str,
    church_id: int,
    item_id: int,
) -> WhiteField | Mission:
    """404 for a missing item and for one that belongs to another church."""
    church = _get_church(db, principal, church_id)
    item = db.get(model, item_id)
    if item is None or item.church_id != church.id:
        raise NotFoundError(label, item_id)
    return item


def _update_outreach(db: Session, item: WhiteField | Mission, data) -> WhiteField | Mission:
    values = data.model_dump(exclude_unset=True)
    if "responsible_id" in values:
        _check_responsible(db, item.church_id, values["responsible_id"])
    for key, value in values.items():
        if key in NON_NULLABLE_UPDATES and value is None:
            continue
        setattr(item, key, value)
    db.commit()
    db.refresh(item)
    return item


def _delete_outreach(db: Session, item: WhiteField | Mission) -> None:
    table, item_id = item.__tablename__, item.id
    db.delete(item)
    db.commit()
    logger.info(f"Deleted {table} row {item_id}")


class ChurchService:
    @staticmethod
    def list_churches(db: Session, principal: Principal) -> list[Church]:
        stmt = apply_tenant_filter(select(Church), principal, Church.id)
        return list(db.execute(stmt.order_by(Church.name)).scalars().all())

    @staticmethod
    def get_church_detail(db: Session, principal: Principal, church_id: int) -> dict[str, Any]:
        church = _get_church(db, principal, church_id)
        fields = db.execute(
            select(WhiteField).where(WhiteField.church_id == church.id).order_by(WhiteField.name)
        ).scalars().all()
        missions = db.execute(
            select(Mission).where(Mission.church_id == church.id).order_by(Mission.name)
        ).scalars().all()

        responsible_ids = {item.responsible_id for item in [*fields, *missions] if item.responsible_id}
        responsibles = {}
        if responsible_ids:
            responsibles = {
                m.id: m
                for m in db.execute(select(Member).where(Member.id.in_(responsible_ids))).scalars()
            }
        return {
            "church": church,
            "white_fields": [_outreach_dict(f, responsibles) for f in fields],
            "missions": [_outreach_dict(m, responsibles) for m in missions],
        }

    @staticmethod
    def create_church(db: Session, data: ChurchCreateRequest) -> Church:
        church = Church(**strip_derived_fields(data.model_dump()))
        db.add(church)
        db.commit()
        db.refresh(church)
        logger.info(f"Created church {church.id} ({church.name})")
        return church

    @staticmethod
    def update_church(
        db: Session, principal: Principal, church_id: int, data: ChurchUpdateRequest
    ) -> Church:
        church = _get_church(db, principal, church_id)
        fields = strip_derived_fields(data.model_dump(exclude_unset=True))
        if "name" in fields and not fields["name"]:
            fields.pop("name")
        for key, value in fields.items():
            setattr(church, key, value)
        db.commit()
        db.refresh(church)
        logger.info(f"Updated church {church.id}")
        return church

    @staticmethod
    def delete_church(db: Session, church_id: int) -> None:
        """Delete a church and every row it owns."""
        church = db.get(Church, church_id)
        if church is None:
            raise NotFoundError("Church", church_id)

        minute_ids = select(Minute.id).where(Minute.church_id == church_id)
        motion_ids = select(Motion.id).where(Motion.minute_id.in_(minute_ids))
        event_ids = select(Event.id).where(Event.church_id == church_id)
        file_urls = list(
            db.execute(
                select(MinuteFile.file_url).where(MinuteFile.minute_id.in_(minute_ids))
            ).scalars()
        )

        db.execute(delete(MotionVoter).where(MotionVoter.motion_id.in_(motion_ids)))
        db.execute(delete(Motion).where(Motion.minute_id.in_(minute_ids)))
        db.execute(delete(MinuteAttendee).where(MinuteAttendee.minute_id.in_(minute_ids)))
        db.execute(delete(MinuteFile).where(MinuteFile.minute_id.in_(minute_ids)))
        db.execute(delete(Minute).where(Minute.church_id == church_id))
        db.execute(delete(EventAttendee).where(EventAttendee.event_id.in_(event_ids)))
        db.execute(delete(Event).where(Event.church_id == church_id))
        db.execute(delete(WeeklyAttendance).where(WeeklyAttendance.church_id == church_id))
        db.execute(delete(WhiteField).where(WhiteField.church_id == church_id))
        db.execute(delete(Mission).where(Mission.church_id == church_id))
        db.execute(delete(Member).where(Member.church_id == church_id))
        db.execute(delete(MinisterialPosition).where(MinisterialPosition.church_id == church_id))
        db.execute(delete(StatsRecalcTask).where(StatsRecalcTask.church_id == church_id))
        db.execute(update(User).where(User.church_id == church_id).values(church_id=None))
        logo_url = church.login_logo_url
        db.delete(church)
        db.commit()
        logger.info(f"Deleted church {church_id}")

        for url in [*file_urls, logo_url]:
            uploads.remove_upload(url)

    @staticmethod
    def recalculate_stats(
        db: Session, principal: Principal, church_id: int, year: Optional[int] = None
    ) -> dict[str, int]:
        church = _get_church(db, principal, church_id)
        return recalculator.recalculate_all(db, church.id, year)

    @staticmethod
    def create_white_field(
        db: Session, principal: Principal, church_id: int, data: WhiteFieldCreateRequest
    ) -> WhiteField:
        return _create_outreach(db, principal, WhiteField, church_id, data)

    @staticmethod
    def update_white_field(
        db: Session,
        principal: Principal,
        church_id: int,
        field_id: int,
        data: WhiteFieldUpdateRequest,
    ) -> WhiteField:
        field = _get_outreach(db, principal, WhiteField, "White field", church_id, field_id)
        return _update_outreach(db, field, data)

    @staticmethod
    def delete_white_field(
        db: Session, principal: Principal, church_id: int, field_id: int
    ) -> None:
        field = _get_outreach(db, principal, WhiteField, "White field", church_id, field_id)
        _delete_outreach(db, field)

    @staticmethod
    def create_mission(
        db: Session, principal: Principal, church_id: int, data: MissionCreateRequest
    ) -> Mission:
        return _create_outreach(db, principal, Mission, church_id, data)

    @staticmethod
    def update_mission(
        db: Session,
        principal: Principal,
        church_id: int,
        mission_id: int,
        data: MissionUpdateRequest,
    ) -> Mission:
        mission = _get_outreach(db, principal, Mission, "Mission", church_id, mission_id)
        return _update_outreach(db, mission, data)

    @staticmethod
    def delete_mission(
        db: Session, principal: Principal, church_id: int, mission_id: int
    ) -> None:
        mission = _get_outreach(db, principal, Mission, "Mission", church_id, mission_id)
        _delete_outreach(db, mission)
