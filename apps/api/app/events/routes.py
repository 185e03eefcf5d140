"""Event API routes."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from app.auth.dependencies import get_current_principal, require_roles
from app.auth.tenancy import Principal
from app.common.db import get_db
from app.common.pagination import Page, PageParams, page_params
from app.core.roles import ADMIN_ONLY, EDITORS
from app.events import schemas
from app.events.calendar_pdf import CalendarPDFGenerator, month_name
from app.events.service import EventService

router = APIRouter(prefix="/events", tags=["events"])


def _pdf_response(content: bytes, filename: str) -> Response:
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("", response_model=Page[schemas.EventResponse])
def list_events(
    church_id: Optional[int] = Query(None),
    event_type: Optional[str] = Query(None),
    start_date: Optional[date] = Query(None, description="Earliest start date (inclusive)"),
    end_date: Optional[date] = Query(None, description="Latest start date (inclusive)"),
    params: PageParams = Depends(page_params),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    events, pagination = EventService.list_events(
        db,
        principal,
        params,
        church_id=church_id,
        event_type=event_type or None,
        start=start_date,
        end=end_date,
    )
    return {"items": events, "pagination": pagination}


@router.get("/calendar-pdf")
def calendar_pdf(
    year: int = Query(..., ge=2000, le=2100),
    month: int = Query(..., ge=1, le=12),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Monthly calendar of the caller's events as a PDF."""
    events = EventService.events_for_month(db, principal, year, month)
    generator = CalendarPDFGenerator(EventService.calendar_church_name(db, principal))
    content = generator.monthly(year, month, events, EventService.role_first_names(db, events))
    return _pdf_response(content, f"Calendario_{month_name(month)}_{year}.pdf")


@router.get("/sales-calendar-pdf")
def sales_calendar_pdf(
    year: int = Query(..., ge=2000, le=2100),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    """Yearly calendar of "Ventas" events as a PDF."""
    events = EventService.sales_events_for_year(db, principal, year)
    generator = CalendarPDFGenerator(EventService.calendar_church_name(db, principal))
    return _pdf_response(generator.sales(year, events), f"Calendario_Ventas_{year}.pdf")


@router.get("/{event_id}", response_model=schemas.EventDetailResponse)
def get_event(
    event_id: int,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
):
    detail = EventService.get_event_detail(db, principal, event_id)
    event = schemas.EventResponse.model_validate(detail.pop("event"))
    return schemas.EventDetailResponse.model_validate(
        {**event.model_dump(), **detail}, from_attributes=True
    )


@router.post("", response_model=schemas.EventResponse, status_code=status.HTTP_201_CREATED)
def create_event(
    request: schemas.EventCreateRequest,
    principal: Principal = Depends(require_roles(*EDITORS)),
    db: Session = Depends(get_db),
):
    return EventService.create_event(db, principal, request)


@router.put("/{event_id}", response_model=schemas.EventResponse)
def update_event(
    event_id: int,
    request: schemas.EventUpdateRequest,
    principal: Principal = Depends(require_roles(*EDITORS)),
    db: Session = Depends(get_db),
):
    return EventService.update_event(db, principal, event_id, request)


@router.delete("/{event_id}", response_model=schemas.EventMutationResponse)
def delete_event(
    event_id: int,
    principal: Principal = Depends(require_roles(*ADMIN_ONLY)),
    db: Session = Depends(get_db),
):
    stats = EventService.delete_event(db, principal, event_id)
    return schemas.EventMutationResponse(message="Event deleted", stats=stats)


@router.post("/{event_id}/attendees", response_model=schemas.RosterReplaceResponse)
def replace_attendees(
    event_id: int,
    request: schemas.RosterReplaceRequest,
    principal: Principal = Depends(require_roles(*EDITORS)),
    db: Session = Depends(get_db),
):
    """Replace the event's attendance roll and return its new counters."""
    return EventService.replace_attendees(db, principal, event_id, request.attendees)
