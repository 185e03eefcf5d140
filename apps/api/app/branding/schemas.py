"""Login screen branding schemas."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from app.common.schemas import InputModel


class BrandingResponse(BaseModel):
    church_id: int
    name: str
    login_title: str
    login_logo_url: Optional[str] = None


class BrandingUpdateRequest(InputModel):
    login_title: Optional[str] = Field(None, max_length=200)


class BrandingUpdateResponse(BaseModel):
    message: str
    branding: BrandingResponse


class LogoUploadResponse(BaseModel):
    message: str
    login_logo_url: str


class MessageResponse(BaseModel):
    message: str
