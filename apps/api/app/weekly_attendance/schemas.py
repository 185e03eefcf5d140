from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.common.schemas import InputModel


class WeeklyAttendanceCreateRequest(InputModel):
    church_id: Optional[int] = None
    week_date: date
    attendance_count: int = Field(..., ge=0)
    notes: Optional[str] = None


class WeeklyAttendanceUpdateRequest(InputModel):
    week_date: Optional[date] = None
    attendance_count: Optional[int] = Field(None, ge=0)
    notes: Optional[str] = None


class WeeklyAttendanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    church_id: int
    week_date: date
    attendance_count: int
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class WeeklyAttendanceMutationResponse(BaseModel):
    record: Optional[WeeklyAttendanceResponse] = None
    # The church average after the write; None if the recalculation is deferred
    avg_weekly_attendance: Optional[int] = None
    message: Optional[str] = None
