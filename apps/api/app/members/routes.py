"""Member API routes."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_principal, require_roles
from app.auth.tenancy import Principal
from app.common.db import get_db
from app.common.pagination import Page, PageParams, page_params
from app.core.roles import ADMIN_ONLY, EDITORS
from app.members import schemas
from app.members.service import MemberService

router = APIRouter(prefix="/members", tags=["members"])


@router.get("", response_model=Page[schemas.MemberResponse])
def list_members(
    church_id: Optional[int] = Query(None),
    member_type: Optional[str] = Query(None),
    church_role: Optional[str] = Query(None),
    position_id: Optional[int] = Query(None),
    baptized: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    params: PageParams = Depends(page_params),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """List members of the caller's church, ordered by last name."""
    members, pagination = MemberService.list_members(
        db,
        principal,
        params,
        church_id=church_id,
        member_type=member_type or None,
        church_role=church_role or None,
        position_id=position_id,
        baptized=baptized,
        search=search or None,
    )
    return {"items": members, "pagination": pagination}


@router.get("/{member_id}", response_model=schemas.MemberResponse)
def get_member(
    member_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    return MemberService.get_member(db, principal, member_id)


@router.post(
    "",
    response_model=schemas.MemberMutationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_member(
    request: schemas.MemberCreateRequest,
    principal: Principal = Depends(require_roles(*EDITORS)),
    db: Session = Depends(get_db),
):
    member, stats = MemberService.create_member(db, principal, request)
    return schemas.MemberMutationResponse.model_validate(member).model_copy(
        update={"stats": stats}
    )


@router.put("/{member_id}", response_model=schemas.MemberMutationResponse)
def update_member(
    member_id: int,
    request: schemas.MemberUpdateRequest,
    principal: Principal = Depends(require_roles(*EDITORS)),
    db: Session = Depends(get_db),
):
    member, stats = MemberService.update_member(db, principal, member_id, request)
    return schemas.MemberMutationResponse.model_validate(member).model_copy(
        update={"stats": stats}
    )


@router.delete("/{member_id}", response_model=schemas.MemberDeleteResponse)
def delete_member(
    member_id: int,
    principal: Principal = Depends(require_roles(*ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    stats = MemberService.delete_member(db, principal, member_id)
    return schemas.MemberDeleteResponse(message="Member deleted", stats=stats)
