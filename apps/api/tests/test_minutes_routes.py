"""Tests for meeting minutes, motions and attached files."""

from __future__ import annotations

from datetime import date

import pytest
from fastapi.testclient import TestClient

from app.common.models import Minute, MinuteFile, Motion, MotionVoter

MINUTES = "/api/v1/minutes"

PDF_BYTES = b"%PDF-1.4 acta de reunion"


@pytest.fixture
def minute(db, church_a, secretary_user) -> Minute:
    record = Minute(
        church_id=church_a.id,
        title="Reunión de junta",
        meeting_date=date(2026, 2, 14),
        created_by=secretary_user.id,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def _disk_path(upload_dir, url: str):
    return upload_dir / url.removeprefix("/uploads/")


class TestCreateMinute:
    def test_create_with_motions(self, client: TestClient, church_a, make_member, secretary_headers):
        ana = make_member(church_a, first_name="Ana")
        luis = make_member(church_a, first_name="Luis")

        response = client.post(
            MINUTES,
            json={
                "title": "Asamblea anual",
                "objective": "Elegir directiva",
                "meeting_date": "2026-01-20",
                "attendee_ids": [ana.id, luis.id, ana.id],
                "motions": [
                    {
                        "title": "Aprobar presupuesto",
                        "result": "Aprobado",
                        "voters": [
                            {"member_id": ana.id, "vote_type": "Secundador"},
                            {"member_id": luis.id},
                        ],
                    },
                    {"title": "Pintar el templo"},
                ],
            },
            headers=secretary_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert len(data["attendees"]) == 2
        assert [m["order_num"] for m in data["motions"]] == [1, 2]
        assert data["motions"][1]["result"] == "Pendiente"
        voters = data["motions"][0]["voters"]
        assert voters[0]["vote_type"] == "Secundador"
        assert voters[0]["member"]["first_name"] == "Ana"

    def test_outside_attendee_rejected(self, client: TestClient, church_a, church_b, make_member, admin_headers, db):
        outsider = make_member(church_b)
        response = client.post(
            MINUTES,
            json={"title": "Junta", "meeting_date": "2026-01-20", "attendee_ids": [outsider.id]},
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert db.query(Minute).count() == 0

    def test_leader_cannot_create(self, client: TestClient, church_a, leader_headers):
        response = client.post(
            MINUTES, json={"title": "Junta", "meeting_date": "2026-01-20"}, headers=leader_headers
        )
        assert response.status_code == 403


class TestMinuteReadAndUpdate:
    def test_list_and_detail(self, client: TestClient, minute, visitor_headers):
        listed = client.get(MINUTES, headers=visitor_headers).json()
        assert listed["items"][0]["title"] == "Reunión de junta"
        assert listed["items"][0]["files"] == []

        detail = client.get(f"{MINUTES}/{minute.id}", headers=visitor_headers).json()
        assert detail["motions"] == []

    def test_foreign_minute_forbidden(self, client: TestClient, minute, other_admin_headers):
        assert client.get(f"{MINUTES}/{minute.id}", headers=other_admin_headers).status_code == 403

    def test_update_only_header_fields(self, client: TestClient, minute, secretary_headers):
        response = client.put(
            f"{MINUTES}/{minute.id}",
            json={"title": "Reunión extraordinaria", "objective": ""},
            headers=secretary_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Reunión extraordinaria"
        assert data["objective"] is None
        assert data["meeting_date"] == "2026-02-14"


class TestMinuteFiles:
    def test_upload_and_remove(self, client: TestClient, minute, secretary_headers, upload_dir, db):
        response = client.post(
            f"{MINUTES}/{minute.id}/files",
            files=[
                ("files", ("acta.pdf", PDF_BYTES, "application/pdf")),
                ("files", ("foto.png", b"\x89PNG fake", "image/png")),
            ],
            headers=secretary_headers,
        )

        assert response.status_code == 201
        stored = response.json()
        assert [f["original_name"] for f in stored] == ["acta.pdf", "foto.png"]
        assert stored[0]["file_size"] == len(PDF_BYTES)
        first_path = _disk_path(upload_dir, stored[0]["file_url"])
        assert first_path.read_bytes() == PDF_BYTES

        db.refresh(minute)
        assert minute.file_url == stored[0]["file_url"]

        response = client.delete(f"{MINUTES}/{minute.id}/files/{stored[0]['id']}", headers=secretary_headers)
        assert response.status_code == 200
        assert not first_path.exists()
        db.refresh(minute)
        assert minute.file_url == stored[1]["file_url"]

    def test_disallowed_type(self, client: TestClient, minute, admin_headers, db):
        response = client.post(
            f"{MINUTES}/{minute.id}/files",
            files=[("files", ("script.exe", b"MZ", "application/octet-stream"))],
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert db.query(MinuteFile).count() == 0

    def test_too_large(self, client: TestClient, minute, admin_headers, monkeypatch, upload_dir, db):
        from app.core.config import settings

        monkeypatch.setattr(settings, "max_minute_file_bytes", 10)
        response = client.post(
            f"{MINUTES}/{minute.id}/files",
            files=[("files", ("acta.pdf", PDF_BYTES, "application/pdf"))],
            headers=admin_headers,
        )
        assert response.status_code == 400
        assert db.query(MinuteFile).count() == 0

    def test_file_of_other_minute_not_found(self, client: TestClient, minute, church_a, admin_headers, db):
        other = Minute(church_id=church_a.id, title="Otra", meeting_date=date(2026, 3, 1))
        db.add(other)
        db.flush()
        record = MinuteFile(minute_id=other.id, file_url="/uploads/minutes/x.pdf")
        db.add(record)
        db.commit()

        response = client.delete(f"{MINUTES}/{minute.id}/files/{record.id}", headers=admin_headers)
        assert response.status_code == 404


class TestDeleteMinute:
    def test_delete_removes_children_and_files(
        self, client: TestClient, church_a, make_member, admin_headers, secretary_headers, upload_dir, db
    ):
        ana = make_member(church_a)
        created = client.post(
            MINUTES,
            json={
                "title": "Junta",
                "meeting_date": "2026-01-20",
                "attendee_ids": [ana.id],
                "motions": [{"title": "Moción", "voters": [{"member_id": ana.id}]}],
            },
            headers=secretary_headers,
        ).json()
        uploaded = client.post(
            f"{MINUTES}/{created['id']}/files",
            files=[("files", ("acta.pdf", PDF_BYTES, "application/pdf"))],
            headers=secretary_headers,
        ).json()
        path = _disk_path(upload_dir, uploaded[0]["file_url"])
        assert path.exists()

        response = client.delete(f"{MINUTES}/{created['id']}", headers=admin_headers)

        assert response.status_code == 200
        assert db.query(Minute).count() == 0
        assert db.query(Motion).count() == 0
        assert db.query(MotionVoter).count() == 0
        assert not path.exists()

    def test_secretary_cannot_delete(self, client: TestClient, minute, secretary_headers):
        assert client.delete(f"{MINUTES}/{minute.id}", headers=secretary_headers).status_code == 403
