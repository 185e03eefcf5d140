"""Pydantic schemas for events and attendance rolls."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.common.schemas import InputModel
from app.core.config import settings
from app.members.schemas import MemberSummary


def _to_local_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Event times are stored as naive local wall-clock time."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(ZoneInfo(settings.scheduler_timezone)).replace(tzinfo=None)
    return value


class EventCreateRequest(InputModel):
    church_id: Optional[int] = None
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    event_type: str = Field("General", min_length=1, max_length=100)
    start_date: datetime
    end_date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=300)
    preacher_id: Optional[int] = None
    worship_leader_id: Optional[int] = None
    singer_id: Optional[int] = None

    normalize_dates = field_validator("start_date", "end_date")(_to_local_naive)

    @model_validator(mode="after")
    def _check_range(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class EventUpdateRequest(InputModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    event_type: Optional[str] = Field(None, min_length=1, max_length=100)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    location: Optional[str] = Field(None, max_length=300)
    preacher_id: Optional[int] = None
    worship_leader_id: Optional[int] = None
    singer_id: Optional[int] = None

    normalize_dates = field_validator("start_date", "end_date")(_to_local_naive)


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    church_id: int
    title: str
    description: Optional[str] = None
    event_type: str
    start_date: datetime
    end_date: Optional[datetime] = None
    location: Optional[str] = None
    created_by: Optional[int] = None
    preacher_id: Optional[int] = None
    worship_leader_id: Optional[int] = None
    singer_id: Optional[int] = None
    attendees_count: int
    faith_decisions: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AttendeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    member_id: int
    attended: bool
    made_faith_decision: bool
    notes: Optional[str] = None
    member: Optional[MemberSummary] = None


class EventDetailResponse(EventResponse):
    attendees: list[AttendeeResponse] = Field(default_factory=list)
    preacher: Optional[MemberSummary] = None
    worship_leader: Optional[MemberSummary] = None
    singer: Optional[MemberSummary] = None


class EventMutationResponse(BaseModel):
    message: str
    stats: dict[str, Any] = Field(default_factory=dict)


class AttendeeEntry(InputModel):
    member_id: int
    attended: bool = True
    made_faith_decision: bool = False
    notes: Optional[str] = None


class RosterReplaceRequest(BaseModel):
    attendees: list[AttendeeEntry]


class RosterReplaceResponse(BaseModel):
    attendees_count: int
    faith_decisions: int
    stats: dict[str, Any] = Field(default_factory=dict)
