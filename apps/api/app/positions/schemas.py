from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.common.schemas import InputModel


class PositionCreateRequest(InputModel):
    church_id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class PositionUpdateRequest(InputModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class PositionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    church_id: int
    name: str
    description: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None


class PositionMutationResponse(PositionResponse):
    members_updated: int = 0
    stats: dict[str, Any] = Field(default_factory=dict)


class PositionDeleteResponse(BaseModel):
    message: str
    deactivated: bool
    stats: dict[str, Any] = Field(default_factory=dict)


class SeedDefaultsRequest(BaseModel):
    church_id: Optional[int] = None


class SeedDefaultsResponse(BaseModel):
    created: list[PositionResponse]
