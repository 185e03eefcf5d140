"""Culto reminder orchestration: schedules, manual sends and the hourly job."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Iterator, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.auth.tenancy import Principal, apply_tenant_filter, get_owned_or_404
from app.common.models import CULTO, Church, Event, Member
from app.core.config import settings
from app.core.errors import BadRequestError, NotFoundError
from app.notifications.schemas import ScheduleRequest
from app.notifications.whatsapp import WhatsAppClient, send_culto_reminders
from app.stats.clock import now_local

logger = logging.getLogger(__name__)

ROLE_ATTRS = (
    ("preacher_id", "preacher"),
    ("worship_leader_id", "worship_leader"),
    ("singer_id", "singer"),
)

UPCOMING_DAYS = 7


def _has_any_role():
    return or_(
        Event.preacher_id.is_not(None),
        Event.worship_leader_id.is_not(None),
        Event.singer_id.is_not(None),
    )


def _assignees(db: Session, events: list[Event]) -> dict[int, Member]:
    ids = {getattr(e, field) for e in events for field, _ in ROLE_ATTRS if getattr(e, field)}
    if not ids:
        return {}
    return {m.id: m for m in db.execute(select(Member).where(Member.id.in_(ids))).scalars()}


def _church_names(db: Session, church_ids: set[int]) -> dict[int, str]:
    if not church_ids:
        return {}
    rows = db.execute(select(Church.id, Church.name).where(Church.id.in_(church_ids))).all()
    return {church_id: name for church_id, name in rows}


class NotificationService:
    @staticmethod
    def status() -> dict[str, Any]:
        configured = settings.whatsapp_configured
        return {
            "whatsapp_configured": configured,
            "has_token": bool(settings.whatsapp_token),
            "has_phone_id": bool(settings.whatsapp_phone_number_id),
            "message": (
                "WhatsApp is configured; reminders are active."
                if configured
                else "WhatsApp is not configured. Set WHATSAPP_TOKEN and WHATSAPP_PHONE_NUMBER_ID."
            ),
        }

    @staticmethod
    def get_schedule(db: Session, principal: Principal) -> dict[str, Any]:
        if principal.church_id is None:
            return {"notification_day_before_hour": None, "notification_same_day_hour": None}
        church = db.get(Church, principal.church_id)
        if church is None:
            raise NotFoundError("Church", principal.church_id)
        return {
            "church_id": church.id,
            "church_name": church.name,
            "notification_day_before_hour": church.notification_day_before_hour,
            "notification_same_day_hour": church.notification_same_day_hour,
        }

    @staticmethod
    def save_schedule(db: Session, principal: Principal, data: ScheduleRequest) -> dict[str, Any]:
        if principal.church_id is None:
            raise BadRequestError("User has no church assigned")
        church = db.get(Church, principal.church_id)
        if church is None:
            raise NotFoundError("Church", principal.church_id)

        church.notification_day_before_hour = data.notification_day_before_hour
        church.notification_same_day_hour = data.notification_same_day_hour
        db.commit()
        logger.info(
            f"Reminder schedule for church {church.id}: "
            f"day_before={church.notification_day_before_hour} "
            f"same_day={church.notification_same_day_hour}"
        )
        return NotificationService.get_schedule(db, principal)

    @staticmethod
    def upcoming_cultos(db: Session, principal: Principal) -> list[dict[str, Any]]:
        now = now_local()
        stmt = select(Event).where(
            Event.event_type == CULTO,
            Event.start_date >= now,
            Event.start_date <= now + timedelta(days=UPCOMING_DAYS),
            _has_any_role(),
        )
        stmt = apply_tenant_filter(stmt, principal, Event.church_id).order_by(Event.start_date)
        events = list(db.execute(stmt).scalars().all())
        members = _assignees(db, events)
        return [
            {
                "id": e.id,
                "church_id": e.church_id,
                "title": e.title,
                "start_date": e.start_date,
                "location": e.location,
                **{name: members.get(getattr(e, field)) for field, name in ROLE_ATTRS},
            }
            for e in events
        ]

    @staticmethod
    def process_reminders_for_date(
        db: Session,
        church_id: Optional[int],
        target_date: date,
        message_type: str,
        client: Optional[WhatsAppClient] = None,
    ) -> dict[str, Any]:
        """Send reminders for every culto with an assigned role on ``target_date``.

        ``church_id`` None covers every church.
        """
        start = datetime.combine(target_date, time.min)
        stmt = select(Event).where(
            Event.event_type == CULTO,
            Event.start_date >= start,
            Event.start_date < start + timedelta(days=1),
            _has_any_role(),
        )
        if church_id is not None:
            stmt = stmt.where(Event.church_id == church_id)
        events = list(db.execute(stmt.order_by(Event.start_date)).scalars().all())
        logger.info(
            f"Found {len(events)} cultos with roles on {target_date.isoformat()} "
            f"(type={message_type}, church={church_id or 'all'})"
        )

        members = _assignees(db, events)
        names = _church_names(db, {e.church_id for e in events})
        summary: dict[str, Any] = {
            "total_cultos": len(events),
            "total_sent": 0,
            "total_failed": 0,
            "total_skipped": 0,
            "details": [],
        }
        with (client or WhatsAppClient()) as whatsapp:
            for event in events:
                church_name = names.get(event.church_id, "Iglesia")
                result = send_culto_reminders(event, members, church_name, message_type, whatsapp)
                summary["total_sent"] += result["sent"]
                summary["total_failed"] += result["failed"]
                summary["total_skipped"] += result["skipped"]
                summary["details"].append(
                    {
                        "event_id": event.id,
                        "title": event.title,
                        "date": event.start_date.isoformat(),
                        "church": church_name,
                        **result,
                    }
                )
        return summary

    @staticmethod
    def churches_due_at(db: Session, hour: int) -> Iterator[tuple[Church, str]]:
        """Yield (church, message_type) for each schedule matching ``hour``."""
        for church in db.execute(
            select(Church).where(Church.notification_day_before_hour == hour).order_by(Church.id)
        ).scalars().all():
            yield church, "reminder"
        for church in db.execute(
            select(Church).where(Church.notification_same_day_hour == hour).order_by(Church.id)
        ).scalars().all():
            yield church, "today"

    @staticmethod
    def send_reminders(
        db: Session,
        principal: Principal,
        message_type: str,
        target_date: Optional[date] = None,
        client: Optional[WhatsAppClient] = None,
    ) -> dict[str, Any]:
        if target_date is None:
            today = now_local().date()
            target_date = today + timedelta(days=1) if message_type == "reminder" else today
        logger.info(
            f"Manual reminders by user {principal.id}: type={message_type} "
            f"date={target_date.isoformat()} church={principal.church_id or 'all'}"
        )
        return NotificationService.process_reminders_for_date(
            db, principal.church_id, target_date, message_type, client
        )

    @staticmethod
    def send_for_event(
        db: Session,
        principal: Principal,
        event_id: int,
        message_type: str,
        client: Optional[WhatsAppClient] = None,
    ) -> dict[str, Any]:
        event = get_owned_or_404(db, Event, event_id, principal, "Event")
        if event.event_type != CULTO:
            raise BadRequestError("Reminders can only be sent for Culto events")
        church = db.get(Church, event.church_id)
        with (client or WhatsAppClient()) as whatsapp:
            return send_culto_reminders(
                event,
                _assignees(db, [event]),
                church.name if church else "Iglesia",
                message_type,
                whatsapp,
            )
