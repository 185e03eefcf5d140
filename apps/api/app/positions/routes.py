"""Ministerial position API routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_principal, require_roles
from app.auth.tenancy import Principal
from app.common.db import get_db
from app.core.roles import ADMIN_ONLY
from app.positions import schemas
from app.positions.service import PositionService

router = APIRouter(prefix="/ministerial-positions", tags=["ministerial-positions"])


@router.get("", response_model=list[schemas.PositionResponse])
def list_positions(
    include_inactive: bool = Query(False),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    return PositionService.list_positions(db, principal, include_inactive)


@router.post(
    "/seed-defaults",
    response_model=schemas.SeedDefaultsResponse,
    status_code=status.HTTP_201_CREATED,
)
def seed_defaults(
    request: Optional[schemas.SeedDefaultsRequest] = Body(None),
    principal: Principal = Depends(require_roles(*ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    church_id = request.church_id if request else None
    created = PositionService.seed_defaults(db, principal, church_id)
    return {"created": created}


@router.post("", response_model=schemas.PositionResponse, status_code=status.HTTP_201_CREATED)
def create_position(
    request: schemas.PositionCreateRequest,
    principal: Principal = Depends(require_roles(*ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    return PositionService.create_position(db, principal, request)


@router.put("/{position_id}", response_model=schemas.PositionMutationResponse)
def update_position(
    position_id: int,
    request: schemas.PositionUpdateRequest,
    principal: Principal = Depends(require_roles(*ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    position, renamed, stats = PositionService.update_position(
        db, principal, position_id, request
    )
    return schemas.PositionMutationResponse.model_validate(position).model_copy(
        update={"members_updated": renamed, "stats": stats}
    )


@router.delete("/{position_id}", response_model=schemas.PositionDeleteResponse)
def delete_position(
    position_id: int,
    principal: Principal = Depends(require_roles(*ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    deactivated, stats = PositionService.delete_position(db, principal, position_id)
    message = "Position deactivated; members still reference it" if deactivated else "Position deleted"
    return schemas.PositionDeleteResponse(message=message, deactivated=deactivated, stats=stats)
