from __future__ import annotations

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.common.schemas import InputModel
from app.members.schemas import MemberSummary

MotionResultLiteral = Literal["Aprobado", "Rechazado", "Pendiente"]
VoteTypeLiteral = Literal["Votante", "Secundador"]


class VoterInput(BaseModel):
    member_id: int
    vote_type: VoteTypeLiteral = "Votante"


class MotionInput(InputModel):
    title: str = Field(..., min_length=1, max_length=300)
    description: Optional[str] = None
    result: Optional[MotionResultLiteral] = None
    voters: list[VoterInput] = Field(default_factory=list)


class MinuteCreateRequest(InputModel):
    church_id: Optional[int] = None
    title: str = Field(..., min_length=1, max_length=200)
    objective: Optional[str] = None
    meeting_date: date
    attendee_ids: list[int] = Field(default_factory=list)
    motions: list[MotionInput] = Field(default_factory=list)


class MinuteUpdateRequest(InputModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    objective: Optional[str] = None
    meeting_date: Optional[date] = None


class MinuteFileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    file_url: str
    original_name: Optional[str] = None
    file_size: Optional[int] = None
    file_type: Optional[str] = None
    created_at: Optional[datetime] = None


class MinuteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    church_id: int
    title: str
    objective: Optional[str] = None
    meeting_date: date
    file_url: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MinuteListItem(MinuteResponse):
    files: list[MinuteFileResponse] = Field(default_factory=list)


class VoterResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    member_id: int
    vote_type: str
    member: Optional[MemberSummary] = None


class MotionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    result: str
    order_num: int
    voters: list[VoterResponse] = Field(default_factory=list)


class MinuteAttendeeResponse(BaseModel):
    id: int
    member_id: int
    member: Optional[MemberSummary] = None


class MinuteDetailResponse(MinuteResponse):
    attendees: list[MinuteAttendeeResponse] = Field(default_factory=list)
    motions: list[MotionResponse] = Field(default_factory=list)
    files: list[MinuteFileResponse] = Field(default_factory=list)


class MessageResponse(BaseModel):
    message: str
