"""WhatsApp reminder routes (Administrador and Secretaría)."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from app.auth.dependencies import require_roles
from app.auth.tenancy import Principal
from app.common.db import get_db
from app.core.roles import ADMIN_AND_SECRETARY
from app.notifications import schemas
from app.notifications.service import NotificationService

router = APIRouter(prefix="/notifications", tags=["notifications"])

staff = require_roles(*ADMIN_AND_SECRETARY)


def _counts(sent: int, failed: int, skipped: int) -> str:
    return f"{sent} sent, {failed} failed, {skipped} skipped"


@router.get("/status", response_model=schemas.StatusResponse)
def get_status(principal: Principal = Depends(staff)):
    return NotificationService.status()


@router.get("/schedule", response_model=schemas.ScheduleResponse)
def get_schedule(
    principal: Principal = Depends(staff),
    db: Session = Depends(get_db),
):
    return NotificationService.get_schedule(db, principal)


@router.put("/schedule", response_model=schemas.ScheduleResponse)
def save_schedule(
    request: schemas.ScheduleRequest,
    principal: Principal = Depends(staff),
    db: Session = Depends(get_db),
):
    """Set the local hours for the day-before and same-day reminders; null disables."""
    return NotificationService.save_schedule(db, principal, request)


@router.get("/upcoming-cultos", response_model=list[schemas.UpcomingCultoResponse])
def upcoming_cultos(
    principal: Principal = Depends(staff),
    db: Session = Depends(get_db),
):
    return NotificationService.upcoming_cultos(db, principal)


@router.post("/send-reminders", response_model=schemas.SendRemindersResponse)
def send_reminders(
    request: Optional[schemas.SendRemindersRequest] = Body(None),
    principal: Principal = Depends(staff),
    db: Session = Depends(get_db),
):
    request = request or schemas.SendRemindersRequest()
    summary = NotificationService.send_reminders(db, principal, request.type, request.target_date)
    return {
        "message": "Reminders processed: "
        + _counts(summary["total_sent"], summary["total_failed"], summary["total_skipped"]),
        "summary": summary,
    }


@router.post("/send/{event_id}", response_model=schemas.SendEventResponse)
def send_for_event(
    event_id: int,
    request: Optional[schemas.SendEventRequest] = Body(None),
    principal: Principal = Depends(staff),
    db: Session = Depends(get_db),
):
    request = request or schemas.SendEventRequest()
    result = NotificationService.send_for_event(db, principal, event_id, request.type)
    return {
        "message": "Reminder processed: "
        + _counts(result["sent"], result["failed"], result["skipped"]),
        "result": result,
    }
