"""Pydantic schemas for churches, white fields and missions.

Derived counters are response-only: request models do not declare them, so
any such keys in a payload are dropped during validation.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.common.schemas import InputModel
from app.members.schemas import MemberSummary


class ChurchCreateRequest(InputModel):
    name: str = Field(..., min_length=1, max_length=200)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)
    logo_url: Optional[str] = Field(None, max_length=500)
    responsible: Optional[str] = Field(None, max_length=200)
    login_title: Optional[str] = Field(None, max_length=200)
    notification_day_before_hour: Optional[int] = Field(None, ge=0, le=23)
    notification_same_day_hour: Optional[int] = Field(None, ge=0, le=23)


class ChurchUpdateRequest(InputModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)
    logo_url: Optional[str] = Field(None, max_length=500)
    responsible: Optional[str] = Field(None, max_length=200)
    login_title: Optional[str] = Field(None, max_length=200)
    notification_day_before_hour: Optional[int] = Field(None, ge=0, le=23)
    notification_same_day_hour: Optional[int] = Field(None, ge=0, le=23)


class ChurchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    logo_url: Optional[str] = None
    responsible: Optional[str] = None
    login_title: Optional[str] = None
    login_logo_url: Optional[str] = None
    notification_day_before_hour: Optional[int] = None
    notification_same_day_hour: Optional[int] = None

    membership_count: int = 0
    avg_weekly_attendance: int = 0
    faith_decisions_year: int = 0
    faith_decisions_ref_year: Optional[int] = None
    ordained_preachers: int = 0
    unordained_preachers: int = 0
    ordained_deacons: int = 0
    unordained_deacons: int = 0

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class WhiteFieldCreateRequest(InputModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    responsible_id: Optional[int] = None
    responsible_name: Optional[str] = Field(None, max_length=200)
    responsible_phone: Optional[str] = Field(None, max_length=30)
    is_active: bool = True


class WhiteFieldUpdateRequest(InputModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    responsible_id: Optional[int] = None
    responsible_name: Optional[str] = Field(None, max_length=200)
    responsible_phone: Optional[str] = Field(None, max_length=30)
    is_active: Optional[bool] = None


class WhiteFieldResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    church_id: int
    name: str
    description: Optional[str] = None
    responsible_id: Optional[int] = None
    responsible_name: Optional[str] = None
    responsible_phone: Optional[str] = None
    is_active: bool
    responsible: Optional[MemberSummary] = None
    created_at: Optional[datetime] = None


class MissionCreateRequest(WhiteFieldCreateRequest):
    """Missions take the same fields as white fields."""


class MissionUpdateRequest(WhiteFieldUpdateRequest):
    pass


class MissionResponse(WhiteFieldResponse):
    pass


class ChurchDetailResponse(ChurchResponse):
    white_fields: list[WhiteFieldResponse] = Field(default_factory=list)
    missions: list[MissionResponse] = Field(default_factory=list)


class ChurchStatsResponse(BaseModel):
    membership_count: int
    avg_weekly_attendance: int
    faith_decisions_year: int
    ordained_preachers: int
    unordained_preachers: int
    ordained_deacons: int
    unordained_deacons: int


class MessageResponse(BaseModel):
    message: str
