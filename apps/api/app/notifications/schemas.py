"""Pydantic schemas for WhatsApp reminder endpoints."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from app.common.schemas import InputModel
from app.members.schemas import MemberSummary

ReminderType = Literal["reminder", "today"]


class StatusResponse(BaseModel):
    whatsapp_configured: bool
    has_token: bool
    has_phone_id: bool
    message: str


class ScheduleRequest(InputModel):
    notification_day_before_hour: Optional[int] = Field(None, ge=0, le=23)
    notification_same_day_hour: Optional[int] = Field(None, ge=0, le=23)


class ScheduleResponse(BaseModel):
    church_id: Optional[int] = None
    church_name: Optional[str] = None
    notification_day_before_hour: Optional[int] = None
    notification_same_day_hour: Optional[int] = None


class UpcomingCultoResponse(BaseModel):
    id: int
    church_id: int
    title: str
    start_date: datetime
    location: Optional[str] = None
    preacher: Optional[MemberSummary] = None
    worship_leader: Optional[MemberSummary] = None
    singer: Optional[MemberSummary] = None


class SendRemindersRequest(InputModel):
    type: ReminderType = "reminder"
    target_date: Optional[date] = Field(None, alias="date")


class SendEventRequest(InputModel):
    type: ReminderType = "reminder"


class ReminderResult(BaseModel):
    sent: int
    failed: int
    skipped: int
    details: list[dict[str, Any]]


class ReminderSummary(BaseModel):
    total_cultos: int
    total_sent: int
    total_failed: int
    total_skipped: int
    details: list[dict[str, Any]]


class SendRemindersResponse(BaseModel):
    message: str
    summary: ReminderSummary


class SendEventResponse(BaseModel):
    message: str
    result: ReminderResult
