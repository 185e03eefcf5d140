"""Meeting minutes API routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_principal, require_roles
from app.auth.tenancy import Principal
from app.common.db import get_db
from app.common.pagination import Page, PageParams, page_params
from app.core.roles import ADMIN_AND_SECRETARY, ADMIN_ONLY
from app.minutes import schemas
from app.minutes.service import MinuteService

router = APIRouter(prefix="/minutes", tags=["minutes"])


def _detail_response(detail: dict) -> schemas.MinuteDetailResponse:
    minute = schemas.MinuteResponse.model_validate(detail.pop("minute"))
    return schemas.MinuteDetailResponse.model_validate(
        {**minute.model_dump(), **detail}, from_attributes=True
    )


@router.get("", response_model=Page[schemas.MinuteListItem])
def list_minutes(
    church_id: Optional[int] = Query(None),
    params: PageParams = Depends(page_params),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    items, pagination = MinuteService.list_minutes(db, principal, params, church_id)
    return {
        "items": [
            schemas.MinuteListItem.model_validate(
                {**schemas.MinuteResponse.model_validate(item["minute"]).model_dump(), "files": item["files"]},
                from_attributes=True,
            )
            for item in items
        ],
        "pagination": pagination,
    }


@router.get("/{minute_id}", response_model=schemas.MinuteDetailResponse)
def get_minute(
    minute_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    return _detail_response(MinuteService.get_minute_detail(db, principal, minute_id))


@router.post("", response_model=schemas.MinuteDetailResponse, status_code=status.HTTP_201_CREATED)
def create_minute(
    request: schemas.MinuteCreateRequest,
    principal: Principal = Depends(require_roles(*ADMIN_AND_SECRETARY)),
    db: Session = Depends(get_db),
):
    return _detail_response(MinuteService.create_minute(db, principal, request))


@router.put("/{minute_id}", response_model=schemas.MinuteResponse)
def update_minute(
    minute_id: int,
    request: schemas.MinuteUpdateRequest,
    principal: Principal = Depends(require_roles(*ADMIN_AND_SECRETARY)),
    db: Session = Depends(get_db),
):
    return MinuteService.update_minute(db, principal, minute_id, request)


@router.delete("/{minute_id}", response_model=schemas.MessageResponse)
def delete_minute(
    minute_id: int,
    principal: Principal = Depends(require_roles(*ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    MinuteService.delete_minute(db, principal, minute_id)
    return schemas.MessageResponse(message="Minute deleted")


@router.post(
    "/{minute_id}/files",
    response_model=list[schemas.MinuteFileResponse],
    status_code=status.HTTP_201_CREATED,
)
def upload_minute_files(
    minute_id: int,
    files: list[UploadFile] = File(...),
    principal: Principal = Depends(require_roles(*ADMIN_AND_SECRETARY)),
    db: Session = Depends(get_db),
):
    return MinuteService.add_files(db, principal, minute_id, files)


@router.delete("/{minute_id}/files/{file_id}", response_model=schemas.MessageResponse)
def delete_minute_file(
    minute_id: int,
    file_id: int,
    principal: Principal = Depends(require_roles(*ADMIN_AND_SECRETARY)),
    db: Session = Depends(get_db),
):
    MinuteService.delete_file(db, principal, minute_id, file_id)
    return schemas.MessageResponse(message="File deleted")
