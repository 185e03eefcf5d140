"""Church API routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_principal, require_roles
from app.auth.tenancy import Principal
from app.churches import schemas
from app.churches.service import ChurchService
from app.common.db import get_db
from app.core.roles import ADMIN_AND_SECRETARY, ADMIN_ONLY, RoleName

router = APIRouter(prefix="/churches", tags=["churches"])

# SuperAdmin only; require_roles always admits the cross-tenant role
super_admin_only = require_roles()


@router.get("", response_model=list[schemas.ChurchResponse])
def list_churches(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    return ChurchService.list_churches(db, principal)


@router.get("/{church_id}", response_model=schemas.ChurchDetailResponse)
def get_church(
    church_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    detail = ChurchService.get_church_detail(db, principal, church_id)
    church = schemas.ChurchResponse.model_validate(detail.pop("church"))
    return schemas.ChurchDetailResponse.model_validate(
        {**church.model_dump(), **detail}, from_attributes=True
    )


@router.post("", response_model=schemas.ChurchResponse, status_code=status.HTTP_201_CREATED)
def create_church(
    request: schemas.ChurchCreateRequest,
    principal: Principal = Depends(super_admin_only),
    db: Session = Depends(get_db),
):
    return ChurchService.create_church(db, request)


@router.put("/{church_id}", response_model=schemas.ChurchResponse)
def update_church(
    church_id: int,
    request: schemas.ChurchUpdateRequest,
    principal: Principal = Depends(require_roles(*ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    return ChurchService.update_church(db, principal, church_id, request)


@router.delete("/{church_id}", response_model=schemas.MessageResponse)
def delete_church(
    church_id: int,
    principal: Principal = Depends(super_admin_only),
    db: Session = Depends(get_db),
):
    ChurchService.delete_church(db, church_id)
    return schemas.MessageResponse(message="Church deleted")


@router.post("/{church_id}/recalculate-stats", response_model=schemas.ChurchStatsResponse)
def recalculate_stats(
    church_id: int,
    year: Optional[int] = Query(None, ge=2000, le=2100),
    principal: Principal = Depends(require_roles(RoleName.ADMIN)),
    db: Session = Depends(get_db),
):
    """Recompute every derived counter of the church now."""
    return ChurchService.recalculate_stats(db, principal, church_id, year)


@router.post(
    "/{church_id}/white-fields",
    response_model=schemas.WhiteFieldResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_white_field(
    church_id: int,
    request: schemas.WhiteFieldCreateRequest,
    principal: Principal = Depends(require_roles(*ADMIN_AND_SECRETARY)),
    db: Session = Depends(get_db),
):
    return ChurchService.create_white_field(db, principal, church_id, request)


@router.put("/{church_id}/white-fields/{field_id}", response_model=schemas.WhiteFieldResponse)
def update_white_field(
    church_id: int,
    field_id: int,
    request: schemas.WhiteFieldUpdateRequest,
    principal: Principal = Depends(require_roles(*ADMIN_AND_SECRETARY)),
    db: Session = Depends(get_db),
):
    return ChurchService.update_white_field(db, principal, church_id, field_id, request)


@router.delete("/{church_id}/white-fields/{field_id}", response_model=schemas.MessageResponse)
def delete_white_field(
    church_id: int,
    field_id: int,
    principal: Principal = Depends(require_roles(*ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    ChurchService.delete_white_field(db, principal, church_id, field_id)
    return schemas.MessageResponse(message="White field deleted")


@router.post(
    "/{church_id}/missions",
    response_model=schemas.MissionResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_mission(
    church_id: int,
    request: schemas.MissionCreateRequest,
    principal: Principal = Depends(require_roles(*ADMIN_AND_SECRETARY)),
    db: Session = Depends(get_db),
):
    return ChurchService.create_mission(db, principal, church_id, request)


@router.put("/{church_id}/missions/{mission_id}", response_model=schemas.MissionResponse)
def update_mission(
    church_id: int,
    mission_id: int,
    request: schemas.MissionUpdateRequest,
    principal: Principal = Depends(require_roles(*ADMIN_AND_SECRETARY)),
    db: Session = Depends(get_db),
):
    return ChurchService.update_mission(db, principal, church_id, mission_id, request)


@router.delete("/{church_id}/missions/{mission_id}", response_model=schemas.MessageResponse)
def delete_mission(
    church_id: int,
    mission_id: int,
    principal: Principal = Depends(require_roles(*ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    ChurchService.delete_mission(db, principal, church_id, mission_id)
    return schemas.MessageResponse(message="Mission deleted")
