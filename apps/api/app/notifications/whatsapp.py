"""WhatsApp Business Cloud client for culto role reminders.

Messages are sent as an approved template so they can be delivered outside
the 24 hour customer-service window. The template body takes six
parameters: first name, "mañana"/"hoy", role, event title, formatted date
and location.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Optional

import httpx

from app.common.models import Event, Member
from app.core.config import settings
from app.core.metrics import emit_business_metric
from app.events.calendar_pdf import DAY_NAMES, MONTH_NAMES

logger = logging.getLogger(__name__)

ROLE_LABELS = (
    ("preacher_id", "Predicar"),
    ("worship_leader_id", "Dirigir la adoración"),
    ("singer_id", "Cantar (líder de cánticos)"),
)

TIME_WORDS = {"reminder": "mañana", "today": "hoy"}

_PHONE_NOISE = re.compile(r"[\s\-\(\)\+]")
DEFAULT_COUNTRY_CODE = "507"


def normalize_phone(phone: str) -> str:
    """Strip formatting; numbers of 8 digits or fewer get the Panama prefix."""
    clean = _PHONE_NOISE.sub("", phone)
    return f"{DEFAULT_COUNTRY_CODE}{clean}" if len(clean) <= 8 else clean


def format_event_date(value: datetime) -> str:
    """e.g. ``Domingo 5 de Abril, 2026 a las 7:30 PM``."""
    day_name = DAY_NAMES[(value.weekday() + 1) % 7]
    hour = value.hour % 12 or 12
    ampm = "PM" if value.hour >= 12 else "AM"
    return (
        f"{day_name} {value.day} de {MONTH_NAMES[value.month - 1]}, {value.year} "
        f"a las {hour}:{value.minute:02d} {ampm}"
    )


class WhatsAppClient:
    """Thin wrapper over the Graph API messages endpoint."""

    def __init__(self, http: Optional[httpx.Client] = None):
        self._http = http
        self._owns_http = http is None

    @property
    def configured(self) -> bool:
        return settings.whatsapp_configured

    def _client(self) -> httpx.Client:
        if self._http is None:
            self._http = httpx.Client(timeout=settings.whatsapp_timeout_seconds)
        return self._http

    def close(self) -> None:
        if self._owns_http and self._http is not None:
            self._http.close()
            self._http = None

    def __enter__(self) -> "WhatsAppClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def send_payload(self, payload: dict[str, Any]) -> dict[str, Any]:
        if not self.configured:
            logger.warning("WhatsApp token or phone number id not configured")
            return {"success": False, "error": "WhatsApp not configured"}

        url = f"{settings.whatsapp_api_base.rstrip('/')}/{settings.whatsapp_phone_number_id}/messages"
        try:
            response = self._client().post(
                url,
                json=payload,
                headers={"Authorization": f"Bearer {settings.whatsapp_token}"},
            )
        except httpx.HTTPError as e:
            logger.error(f"WhatsApp network error sending to {payload.get('to')}: {e}")
            return {"success": False, "error": str(e)}

        try:
            body: Any = response.json()
        except ValueError:
            body = response.text

        if response.is_success:
            logger.info(f"WhatsApp message sent to {payload.get('to')}")
            return {"success": True, "data": body}
        logger.error(
            f"WhatsApp error {response.status_code} sending to {payload.get('to')}: {body}"
        )
        return {"success": False, "error": body}

    def send_template(self, to: str, body_params: list[str]) -> dict[str, Any]:
        payload = {
            "messaging_product": "whatsapp",
            "to": normalize_phone(to),
            "type": "template",
            "template": {
                "name": settings.whatsapp_template_name,
                "language": {"code": settings.whatsapp_template_lang},
                "components": [
                    {
                        "type": "body",
                        "parameters": [{"type": "text", "text": str(p)} for p in body_params],
                    }
                ],
            },
        }
        return self.send_payload(payload)


def send_culto_reminders(
    event: Event,
    assignees: dict[int, Member],
    church_name: Optional[str],
    message_type: str = "reminder",
    client: Optional[WhatsAppClient] = None,
) -> dict[str, Any]:
    """Send the role reminder to each assigned member of one culto.

    ``assignees`` maps member id to Member for the event's role fields.
    Returns ``{sent, failed, skipped, details}``.
    """
    results: dict[str, Any] = {"sent": 0, "failed": 0, "skipped": 0, "details": []}
    client = client or WhatsAppClient()

    time_word = TIME_WORDS.get(message_type, "mañana")
    date_str = format_event_date(event.start_date)
    location = event.location or church_name or "Por confirmar"

    for field, role in ROLE_LABELS:
        member = assignees.get(getattr(event, field)) if getattr(event, field) else None
        if member is None:
            results["skipped"] += 1
            continue

        full_name = f"{member.first_name} {member.last_name}"
        if not member.phone:
            logger.warning(f"{full_name} has no phone number; skipping {role}")
            results["skipped"] += 1
            results["details"].append({"member": full_name, "role": role, "status": "sin_telefono"})
            continue

        result = client.send_template(
            member.phone,
            [member.first_name, time_word, role, event.title, date_str, location],
        )
        if result["success"]:
            results["sent"] += 1
        else:
            results["failed"] += 1
        results["details"].append(
            {
                "member": full_name,
                "phone": member.phone,
                "role": role,
                "status": "enviado" if result["success"] else "error",
                "error": None if result["success"] else str(result.get("error")),
            }
        )

    emit_business_metric(
        "RemindersSent", results["sent"], category="notifications", event_id=event.id
    )
    if results["failed"]:
        emit_business_metric(
            "RemindersFailed", results["failed"], category="notifications", event_id=event.id
        )
    return results
