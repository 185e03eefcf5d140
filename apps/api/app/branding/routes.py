"""Branding routes; reading one church's branding needs no token."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from app.auth.dependencies import require_roles
from app.auth.tenancy import Principal
from app.branding import schemas
from app.branding.service import BrandingService
from app.common.db import get_db
from app.core.roles import ADMIN_ONLY

router = APIRouter(prefix="/branding", tags=["branding"])


@router.get("", response_model=list[schemas.BrandingResponse])
def list_branding(
    principal: Principal = Depends(require_roles(*ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    return BrandingService.list_branding(db, principal)


@router.get("/{church_id}", response_model=schemas.BrandingResponse)
def get_branding(church_id: int, db: Session = Depends(get_db)):
    return BrandingService.get_public(db, church_id)


@router.put("/{church_id}", response_model=schemas.BrandingUpdateResponse)
def update_branding(
    church_id: int,
    request: schemas.BrandingUpdateRequest,
    principal: Principal = Depends(require_roles(*ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    branding = BrandingService.update_title(db, principal, church_id, request.login_title)
    return schemas.BrandingUpdateResponse(message="Branding updated", branding=branding)


@router.post("/{church_id}/logo", response_model=schemas.LogoUploadResponse)
def upload_logo(
    church_id: int,
    logo: Optional[UploadFile] = File(None),
    principal: Principal = Depends(require_roles(*ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    url = BrandingService.upload_logo(db, principal, church_id, logo)
    return schemas.LogoUploadResponse(message="Logo uploaded", login_logo_url=url)


@router.delete("/{church_id}/logo", response_model=schemas.MessageResponse)
def delete_logo(
    church_id: int,
    principal: Principal = Depends(require_roles(*ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    BrandingService.delete_logo(db, principal, church_id)
    return schemas.MessageResponse(message="Logo removed")
