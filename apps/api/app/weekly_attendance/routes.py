"""Weekly attendance API routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_principal, require_roles
from app.auth.tenancy import Principal
from app.common.db import get_db
from app.common.pagination import Page, PageParams
from app.core.roles import ADMIN_AND_SECRETARY, ADMIN_ONLY, EDITORS
from app.weekly_attendance import schemas
from app.weekly_attendance.service import WeeklyAttendanceService

router = APIRouter(prefix="/weekly-attendance", tags=["weekly-attendance"])


def weekly_page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(52, ge=1, le=100),
) -> PageParams:
    """A year of weeks per page by default."""
    return PageParams(page=page, limit=limit)


@router.get("", response_model=Page[schemas.WeeklyAttendanceResponse])
def list_weekly_attendance(
    year: Optional[int] = Query(None, ge=1900, le=2100),
    church_id: Optional[int] = Query(None),
    params: PageParams = Depends(weekly_page_params),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    records, pagination = WeeklyAttendanceService.list_records(
        db, principal, params, year=year, church_id=church_id
    )
    return {"items": records, "pagination": pagination}


@router.get("/{record_id}", response_model=schemas.WeeklyAttendanceResponse)
def get_weekly_attendance(
    record_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    return WeeklyAttendanceService.get_record(db, principal, record_id)


@router.post(
    "",
    response_model=schemas.WeeklyAttendanceMutationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_weekly_attendance(
    request: schemas.WeeklyAttendanceCreateRequest,
    principal: Principal = Depends(require_roles(*EDITORS)),
    db: Session = Depends(get_db),
):
    record, average = WeeklyAttendanceService.create_record(db, principal, request)
    return {"record": record, "avg_weekly_attendance": average}


@router.put("/{record_id}", response_model=schemas.WeeklyAttendanceMutationResponse)
def update_weekly_attendance(
    record_id: int,
    request: schemas.WeeklyAttendanceUpdateRequest,
    principal: Principal = Depends(require_roles(*ADMIN_AND_SECRETARY)),
    db: Session = Depends(get_db),
):
    record, average = WeeklyAttendanceService.update_record(db, principal, record_id, request)
    return {"record": record, "avg_weekly_attendance": average}


@router.delete("/{record_id}", response_model=schemas.WeeklyAttendanceMutationResponse)
def delete_weekly_attendance(
    record_id: int,
    principal: Principal = Depends(require_roles(*ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    average = WeeklyAttendanceService.delete_record(db, principal, record_id)
    return {"message": "Weekly attendance deleted", "avg_weekly_attendance": average}
