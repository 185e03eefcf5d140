"""Tests for WhatsApp culto reminders."""

from __future__ import annotations

import json
from datetime import date, datetime, timedelta

import httpx
import pytest
from fastapi.testclient import TestClient

from app.common.models import Event
from app.core.config import settings
from app.jobs.tasks import send_scheduled_reminders
from app.notifications import service as notification_service
from app.notifications.service import NotificationService
from app.notifications.whatsapp import (
    WhatsAppClient,
    format_event_date,
    normalize_phone,
    send_culto_reminders,
)
from app.stats.clock import now_local

NOTIFICATIONS = "/api/v1/notifications"


@pytest.fixture(autouse=True)
def no_whatsapp_credentials(monkeypatch):
    monkeypatch.setattr(settings, "whatsapp_token", "")
    monkeypatch.setattr(settings, "whatsapp_phone_number_id", "")


@pytest.fixture
def whatsapp_settings(no_whatsapp_credentials, monkeypatch):
    monkeypatch.setattr(settings, "whatsapp_token", "test-token")
    monkeypatch.setattr(settings, "whatsapp_phone_number_id", "12345")
    monkeypatch.setattr(settings, "whatsapp_api_base", "https://graph.test/v18.0")


@pytest.fixture
def sent_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
def whatsapp_client(sent_requests):
    def handler(request: httpx.Request) -> httpx.Response:
        sent_requests.append(request)
        return httpx.Response(200, json={"messages": [{"id": "wamid.1"}]})

    return WhatsAppClient(http=httpx.Client(transport=httpx.MockTransport(handler)))


@pytest.fixture
def culto_with_roles(db, church_a, make_member) -> Event:
    preacher = make_member(church_a, first_name="Pedro", last_name="Gómez", phone="6123-4567")
    leader = make_member(church_a, first_name="Lucía", last_name="Ríos")
    event = Event(
        church_id=church_a.id,
        title="Culto dominical",
        event_type="Culto",
        start_date=datetime(2026, 4, 5, 19, 30),
        preacher_id=preacher.id,
        worship_leader_id=leader.id,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def _template_params(request: httpx.Request) -> list[str]:
    payload = json.loads(request.content)
    return [p["text"] for p in payload["template"]["components"][0]["parameters"]]


class TestFormatting:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("6123-4567", "50761234567"),
            ("+507 6123 4567", "50761234567"),
            ("(1) 555-123-4567", "15551234567"),
        ],
    )
    def test_normalize_phone(self, raw, expected):
        assert normalize_phone(raw) == expected

    def test_format_event_date(self):
        assert format_event_date(datetime(2026, 4, 5, 19, 30)) == "Domingo 5 de Abril, 2026 a las 7:30 PM"
        assert format_event_date(datetime(2026, 4, 6, 0, 5)) == "Lunes 6 de Abril, 2026 a las 12:05 AM"


class TestWhatsAppClient:
    def test_not_configured_makes_no_request(self, sent_requests, whatsapp_client):
        result = whatsapp_client.send_template("6123-4567", ["Ana"])

        assert result == {"success": False, "error": "WhatsApp not configured"}
        assert sent_requests == []

    def test_sends_template(self, whatsapp_settings, sent_requests, whatsapp_client):
        result = whatsapp_client.send_template("6123-4567", ["Ana", "hoy"])

        assert result["success"] is True
        request = sent_requests[0]
        assert str(request.url) == "https://graph.test/v18.0/12345/messages"
        assert request.headers["Authorization"] == "Bearer test-token"
        payload = json.loads(request.content)
        assert payload["to"] == "50761234567"
        assert payload["template"]["name"] == "culto_recordatorio"
        assert payload["template"]["language"] == {"code": "es"}
        assert _template_params(request) == ["Ana", "hoy"]

    def test_error_response(self, whatsapp_settings):
        transport = httpx.MockTransport(lambda request: httpx.Response(400, json={"error": "bad template"}))
        client = WhatsAppClient(http=httpx.Client(transport=transport))

        result = client.send_template("6123-4567", ["Ana"])

        assert result == {"success": False, "error": {"error": "bad template"}}


class TestCultoReminders:
    def test_counts_and_params(self, whatsapp_settings, culto_with_roles, sent_requests, whatsapp_client, db):
        members = notification_service._assignees(db, [culto_with_roles])

        result = send_culto_reminders(culto_with_roles, members, "Iglesia Central", "reminder", whatsapp_client)

        assert (result["sent"], result["failed"], result["skipped"]) == (1, 0, 2)
        assert [d["status"] for d in result["details"]] == ["enviado", "sin_telefono"]
        assert _template_params(sent_requests[0]) == [
            "Pedro",
            "mañana",
            "Predicar",
            "Culto dominical",
            "Domingo 5 de Abril, 2026 a las 7:30 PM",
            "Iglesia Central",
        ]

    def test_process_for_date(self, whatsapp_settings, culto_with_roles, church_a, whatsapp_client, db):
        db.add(
            Event(
                church_id=church_a.id,
                title="Ventas",
                event_type="Ventas",
                start_date=datetime(2026, 4, 5, 9),
                preacher_id=culto_with_roles.preacher_id,
            )
        )
        db.commit()

        summary = NotificationService.process_reminders_for_date(
            db, church_a.id, date(2026, 4, 5), "today", whatsapp_client
        )

        assert summary["total_cultos"] == 1
        assert (summary["total_sent"], summary["total_failed"], summary["total_skipped"]) == (1, 0, 2)
        assert summary["details"][0]["church"] == "Iglesia Central"

    def test_other_church_excluded(self, whatsapp_settings, culto_with_roles, church_b, whatsapp_client, db):
        summary = NotificationService.process_reminders_for_date(
            db, church_b.id, date(2026, 4, 5), "today", whatsapp_client
        )
        assert summary["total_cultos"] == 0

    def test_scheduled_job_skips_without_credentials(self):
        assert send_scheduled_reminders() == {}


class TestScheduleRoutes:
    def test_status(self, client: TestClient, admin_headers):
        data = client.get(f"{NOTIFICATIONS}/status", headers=admin_headers).json()
        assert data["whatsapp_configured"] is False
        assert data["has_token"] is False

    def test_save_and_read_schedule(self, client: TestClient, church_a, secretary_headers):
        response = client.put(
            f"{NOTIFICATIONS}/schedule",
            json={"notification_day_before_hour": 18, "notification_same_day_hour": None},
            headers=secretary_headers,
        )
        assert response.status_code == 200

        data = client.get(f"{NOTIFICATIONS}/schedule", headers=secretary_headers).json()
        assert data == {
            "church_id": church_a.id,
            "church_name": "Iglesia Central",
            "notification_day_before_hour": 18,
            "notification_same_day_hour": None,
        }

    def test_invalid_hour(self, client: TestClient, church_a, admin_headers):
        response = client.put(
            f"{NOTIFICATIONS}/schedule", json={"notification_same_day_hour": 24}, headers=admin_headers
        )
        assert response.status_code == 422

    def test_churchless_super_admin(self, client: TestClient, super_admin_headers):
        data = client.get(f"{NOTIFICATIONS}/schedule", headers=super_admin_headers).json()
        assert data["notification_day_before_hour"] is None
        response = client.put(
            f"{NOTIFICATIONS}/schedule", json={"notification_same_day_hour": 8}, headers=super_admin_headers
        )
        assert response.status_code == 400

    def test_leader_forbidden(self, client: TestClient, leader_headers):
        assert client.get(f"{NOTIFICATIONS}/status", headers=leader_headers).status_code == 403


class TestSendRoutes:
    @pytest.fixture(autouse=True)
    def patched_client(self, monkeypatch, whatsapp_settings, whatsapp_client):
        monkeypatch.setattr(notification_service, "WhatsAppClient", lambda: whatsapp_client)

    def test_upcoming_cultos(self, client: TestClient, church_a, make_member, admin_headers, db):
        preacher = make_member(church_a, first_name="Pedro")
        soon = now_local().replace(microsecond=0) + timedelta(days=2)
        db.add_all(
            [
                Event(church_id=church_a.id, title="Culto", event_type="Culto", start_date=soon, preacher_id=preacher.id),
                Event(church_id=church_a.id, title="Sin roles", event_type="Culto", start_date=soon),
                Event(
                    church_id=church_a.id,
                    title="Lejano",
                    event_type="Culto",
                    start_date=soon + timedelta(days=30),
                    preacher_id=preacher.id,
                ),
            ]
        )
        db.commit()

        data = client.get(f"{NOTIFICATIONS}/upcoming-cultos", headers=admin_headers).json()

        assert [e["title"] for e in data] == ["Culto"]
        assert data[0]["preacher"]["first_name"] == "Pedro"
        assert data[0]["singer"] is None

    def test_send_reminders_for_date(
        self, client: TestClient, culto_with_roles, secretary_headers, sent_requests
    ):
        response = client.post(
            f"{NOTIFICATIONS}/send-reminders",
            json={"type": "today", "date": "2026-04-05"},
            headers=secretary_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Reminders processed: 1 sent, 0 failed, 2 skipped"
        assert _template_params(sent_requests[0])[1] == "hoy"

    def test_send_for_event(self, client: TestClient, culto_with_roles, admin_headers):
        response = client.post(f"{NOTIFICATIONS}/send/{culto_with_roles.id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["result"]["sent"] == 1

    def test_send_for_non_culto(self, client: TestClient, church_a, admin_headers, db):
        event = Event(church_id=church_a.id, title="Venta", event_type="Ventas", start_date=datetime(2026, 4, 5, 9))
        db.add(event)
        db.commit()

        response = client.post(f"{NOTIFICATIONS}/send/{event.id}", headers=admin_headers)
        assert response.status_code == 400

    def test_send_for_foreign_event(self, client: TestClient, culto_with_roles, other_admin_headers):
        response = client.post(f"{NOTIFICATIONS}/send/{culto_with_roles.id}", headers=other_admin_headers)
        assert response.status_code == 403
