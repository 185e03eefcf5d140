"""Pydantic schemas for members."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.common.schemas import InputModel

MemberTypeLiteral = Literal["Miembro", "Visitante", "Familiar", "Infante", "Otro"]
SexLiteral = Literal["M", "F"]


class MemberCreateRequest(InputModel):
    church_id: Optional[int] = None
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    age: Optional[int] = Field(None, ge=0, le=150)
    sex: Optional[SexLiteral] = None
    birth_date: Optional[date] = None
    baptized: bool = False
    member_type: MemberTypeLiteral = "Miembro"
    church_role: Optional[str] = Field(None, max_length=100)
    position_id: Optional[int] = None
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    photo_url: Optional[str] = Field(None, max_length=500)


class MemberUpdateRequest(InputModel):
    church_id: Optional[int] = None
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    age: Optional[int] = Field(None, ge=0, le=150)
    sex: Optional[SexLiteral] = None
    birth_date: Optional[date] = None
    baptized: Optional[bool] = None
    member_type: Optional[MemberTypeLiteral] = None
    church_role: Optional[str] = Field(None, max_length=100)
    position_id: Optional[int] = None
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    photo_url: Optional[str] = Field(None, max_length=500)


class MemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    church_id: int
    first_name: str
    last_name: str
    age: Optional[int] = None
    sex: Optional[str] = None
    birth_date: Optional[date] = None
    baptized: bool
    member_type: str
    church_role: Optional[str] = None
    position_id: Optional[int] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    photo_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MemberSummary(BaseModel):
    """Compact member reference embedded in other resources."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    phone: Optional[str] = None


class MemberMutationResponse(MemberResponse):
    """Member plus the church counters recomputed by the write."""

    stats: dict[str, Any] = Field(default_factory=dict)


class MemberDeleteResponse(BaseModel):
    message: str
    stats: dict[str, Any] = Field(default_factory=dict)
