"""Weekly attendance service layer."""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth.tenancy import (
    Principal,
    apply_tenant_filter,
    get_owned_or_404,
    resolve_church_id,
)
from app.common.models import Church, WeeklyAttendance
from app.common.pagination import PageParams, Pagination, paginate
from app.core.errors import ConflictError, ForbiddenError, NotFoundError
from app.core.roles import RoleName
from app.stats import hooks as stats_hooks
from app.stats import outbox as stats_outbox
from app.weekly_attendance.schemas import (
    WeeklyAttendanceCreateRequest,
    WeeklyAttendanceUpdateRequest,
)

logger = logging.getLogger(__name__)


def _week_taken(
    db: Session, church_id: int, week_date: date, exclude_id: Optional[int] = None
) -> bool:
    stmt = select(WeeklyAttendance.id).where(
        WeeklyAttendance.church_id == church_id,
        WeeklyAttendance.week_date == week_date,
    )
    if exclude_id is not None:
        stmt = stmt.where(WeeklyAttendance.id != exclude_id)
    return db.execute(stmt).first() is not None


def _ensure_can_modify(principal: Principal, record: WeeklyAttendance) -> None:
    """Only the creator or an administrator may change a record."""
    if principal.has_cross_tenant_bypass or principal.role == RoleName.ADMIN:
        return
    if record.created_by is not None and record.created_by == principal.id:
        return
    raise ForbiddenError("Only the creator or an administrator can modify this record")


def _average_from(stats: dict, church_id: int, db: Session) -> Optional[int]:
    if stats_hooks.AVG_WEEKLY_ATTENDANCE in stats:
        return stats[stats_hooks.AVG_WEEKLY_ATTENDANCE]
    church = db.get(Church, church_id)
    return church.avg_weekly_attendance if church else None


class WeeklyAttendanceService:
    @staticmethod
    def list_records(
        db: Session,
        principal: Principal,
        params: PageParams,
        year: Optional[int] = None,
        church_id: Optional[int] = None,
    ) -> tuple[list[WeeklyAttendance], Pagination]:
        stmt = apply_tenant_filter(
            select(WeeklyAttendance), principal, WeeklyAttendance.church_id
        )
        if church_id is not None:
            stmt = stmt.where(WeeklyAttendance.church_id == church_id)
        if year is not None:
            stmt = stmt.where(
                WeeklyAttendance.week_date >= date(year, 1, 1),
                WeeklyAttendance.week_date <= date(year, 12, 31),
            )
        stmt = stmt.order_by(WeeklyAttendance.week_date.desc())
        return paginate(db, stmt, params)

    @staticmethod
    def get_record(db: Session, principal: Principal, record_id: int) -> WeeklyAttendance:
        return get_owned_or_404(db, WeeklyAttendance, record_id, principal, "Weekly attendance")

    @staticmethod
    def create_record(
        db: Session, principal: Principal, data: WeeklyAttendanceCreateRequest
    ) -> tuple[WeeklyAttendance, Optional[int]]:
        church_id = resolve_church_id(principal, data.church_id)
        if db.get(Church, church_id) is None:
            raise NotFoundError("Church", church_id)
        if _week_taken(db, church_id, data.week_date):
            raise ConflictError(
                "Attendance for this week is already registered",
                details={"week_date": data.week_date.isoformat()},
            )

        record = WeeklyAttendance(
            church_id=church_id,
            week_date=data.week_date,
            attendance_count=data.attendance_count,
            notes=data.notes,
            created_by=principal.id,
        )
        db.add(record)
        tasks = stats_hooks.weekly_attendance_changed(db, church_id)
        db.commit()
        db.refresh(record)
        logger.info(f"Registered attendance {record.id} for church {church_id} week {record.week_date}")

        stats = stats_outbox.run_tasks(db, tasks)
        db.refresh(record)
        return record, _average_from(stats, church_id, db)

    @staticmethod
    def update_record(
        db: Session,
        principal: Principal,
        record_id: int,
        data: WeeklyAttendanceUpdateRequest,
    ) -> tuple[WeeklyAttendance, Optional[int]]:
        record = get_owned_or_404(db, WeeklyAttendance, record_id, principal, "Weekly attendance")
        _ensure_can_modify(principal, record)

        fields = data.model_dump(exclude_unset=True)
        new_week = fields.get("week_date") or record.week_date
        if new_week != record.week_date and _week_taken(
            db, record.church_id, new_week, exclude_id=record.id
        ):
            raise ConflictError(
                "Attendance for this week is already registered",
                details={"week_date": new_week.isoformat()},
            )

        record.week_date = new_week
        if fields.get("attendance_count") is not None:
            record.attendance_count = fields["attendance_count"]
        if "notes" in fields:
            record.notes = fields["notes"]

        tasks = stats_hooks.weekly_attendance_changed(db, record.church_id)
        db.commit()
        logger.info(f"Updated attendance {record.id}")

        stats = stats_outbox.run_tasks(db, tasks)
        db.refresh(record)
        return record, _average_from(stats, record.church_id, db)

    @staticmethod
    def delete_record(db: Session, principal: Principal, record_id: int) -> Optional[int]:
        record = get_owned_or_404(db, WeeklyAttendance, record_id, principal, "Weekly attendance")
        _ensure_can_modify(principal, record)

        church_id = record.church_id
        tasks = stats_hooks.weekly_attendance_changed(db, church_id)
        db.delete(record)
        db.commit()
        logger.info(f"Deleted attendance {record_id}")

        stats = stats_outbox.run_tasks(db, tasks)
        return _average_from(stats, church_id, db)
