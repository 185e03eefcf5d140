"""Tests for church management, white fields, missions and stats recalculation."""

from __future__ import annotations

from datetime import date, datetime

from fastapi.testclient import TestClient

from app.common.models import Church, Event, Member, Mission, User, WeeklyAttendance, WhiteField

CHURCHES = "/api/v1/churches"


class TestChurchCrud:
    def test_super_admin_creates(self, client: TestClient, super_admin_headers):
        response = client.post(
            CHURCHES,
            json={"name": "Iglesia del Sur", "phone": "", "membership_count": 999},
            headers=super_admin_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Iglesia del Sur"
        assert data["phone"] is None
        assert data["membership_count"] == 0

    def test_admin_cannot_create(self, client: TestClient, admin_headers):
        response = client.post(CHURCHES, json={"name": "Otra"}, headers=admin_headers)
        assert response.status_code == 403

    def test_list_scoped_to_own_church(self, client: TestClient, church_a, church_b, admin_headers, super_admin_headers):
        own = client.get(CHURCHES, headers=admin_headers).json()
        assert [c["name"] for c in own] == ["Iglesia Central"]

        every = client.get(CHURCHES, headers=super_admin_headers).json()
        assert [c["name"] for c in every] == ["Iglesia Central", "Iglesia del Norte"]

    def test_update_ignores_derived_counters(self, client: TestClient, church_a, admin_headers, db):
        response = client.put(
            f"{CHURCHES}/{church_a.id}",
            json={"responsible": "Pastor Juan", "avg_weekly_attendance": 500},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["responsible"] == "Pastor Juan"
        db.refresh(church_a)
        assert church_a.avg_weekly_attendance == 0

    def test_invalid_notification_hour(self, client: TestClient, church_a, admin_headers):
        response = client.put(
            f"{CHURCHES}/{church_a.id}",
            json={"notification_same_day_hour": 24},
            headers=admin_headers,
        )
        assert response.status_code == 422

    def test_foreign_church_forbidden(self, client: TestClient, church_b, admin_headers):
        assert client.get(f"{CHURCHES}/{church_b.id}", headers=admin_headers).status_code == 403
        assert client.get(f"{CHURCHES}/99999", headers=admin_headers).status_code == 404

    def test_delete_church_removes_owned_rows(
        self, client: TestClient, church_a, admin_user, make_member, super_admin_headers, db
    ):
        make_member(church_a)
        db.add(Event(church_id=church_a.id, title="Culto", event_type="Culto", start_date=datetime(2026, 4, 5, 10)))
        db.add(WeeklyAttendance(church_id=church_a.id, week_date=date(2026, 4, 5), attendance_count=50))
        db.add(Mission(church_id=church_a.id, name="Misión Costa"))
        db.commit()

        response = client.delete(f"{CHURCHES}/{church_a.id}", headers=super_admin_headers)

        assert response.status_code == 200
        db.expire_all()
        assert db.get(Church, church_a.id) is None
        assert db.query(Member).count() == 0
        assert db.query(Event).count() == 0
        assert db.query(WeeklyAttendance).count() == 0
        assert db.query(Mission).count() == 0
        assert db.get(User, admin_user.id).church_id is None


class TestChurchDetail:
    def test_detail_lists_white_fields_and_missions(self, client: TestClient, church_a, make_member, visitor_headers, db):
        leader = make_member(church_a, first_name="Marta", phone="6123-4567")
        db.add(WhiteField(church_id=church_a.id, name="Campo Norte", responsible_id=leader.id))
        db.add(Mission(church_id=church_a.id, name="Misión Costa", responsible_name="Hno. Pedro"))
        db.commit()

        data = client.get(f"{CHURCHES}/{church_a.id}", headers=visitor_headers).json()

        assert data["name"] == "Iglesia Central"
        assert data["white_fields"][0]["name"] == "Campo Norte"
        assert data["white_fields"][0]["responsible"]["first_name"] == "Marta"
        assert data["missions"][0]["name"] == "Misión Costa"
        assert data["missions"][0]["responsible"] is None
        assert data["missions"][0]["responsible_name"] == "Hno. Pedro"


class TestRecalculateStats:
    def test_admin_recalculates(self, client: TestClient, church_a, make_member, admin_headers, db):
        make_member(church_a, church_role="Predicador Ordenado")
        make_member(church_a, church_role="Predicador Ordenado")
        make_member(church_a)
        for day, count in ((1, 10), (8, 20), (15, 30)):
            db.add(WeeklyAttendance(church_id=church_a.id, week_date=date(2026, 3, day), attendance_count=count))
        db.commit()

        response = client.post(f"{CHURCHES}/{church_a.id}/recalculate-stats?year=2026", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {
            "membership_count": 3,
            "avg_weekly_attendance": 20,
            "faith_decisions_year": 0,
            "ordained_preachers": 2,
            "unordained_preachers": 0,
            "ordained_deacons": 0,
            "unordained_deacons": 0,
        }

    def test_secretary_forbidden(self, client: TestClient, church_a, secretary_headers):
        response = client.post(f"{CHURCHES}/{church_a.id}/recalculate-stats", headers=secretary_headers)
        assert response.status_code == 403


class TestWhiteFields:
    def test_create_update_delete(self, client: TestClient, church_a, make_member, secretary_headers, admin_headers):
        member = make_member(church_a)
        created = client.post(
            f"{CHURCHES}/{church_a.id}/white-fields",
            json={"name": "Campo Este", "responsible_id": member.id},
            headers=secretary_headers,
        )
        assert created.status_code == 201
        field_id = created.json()["id"]

        updated = client.put(
            f"{CHURCHES}/{church_a.id}/white-fields/{field_id}",
            json={"is_active": False, "responsible_phone": "6000-0000"},
            headers=secretary_headers,
        )
        assert updated.json()["is_active"] is False
        assert updated.json()["name"] == "Campo Este"

        assert client.delete(
            f"{CHURCHES}/{church_a.id}/white-fields/{field_id}", headers=secretary_headers
        ).status_code == 403
        assert client.delete(
            f"{CHURCHES}/{church_a.id}/white-fields/{field_id}", headers=admin_headers
        ).status_code == 200

    def test_responsible_from_other_church(self, client: TestClient, church_a, church_b, make_member, admin_headers):
        outsider = make_member(church_b)
        response = client.post(
            f"{CHURCHES}/{church_a.id}/white-fields",
            json={"name": "Campo", "responsible_id": outsider.id},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_field_under_wrong_church_not_found(self, client: TestClient, church_a, church_b, super_admin_headers, db):
        field = WhiteField(church_id=church_b.id, name="Campo")
        db.add(field)
        db.commit()

        response = client.put(
            f"{CHURCHES}/{church_a.id}/white-fields/{field.id}", json={"name": "X"}, headers=super_admin_headers
        )
        assert response.status_code == 404


class TestMissions:
    def test_create_update_delete(self, client: TestClient, church_a, make_member, secretary_headers, admin_headers):
        member = make_member(church_a)
        created = client.post(
            f"{CHURCHES}/{church_a.id}/missions",
            json={"name": "Misión Costa", "responsible_id": member.id},
            headers=secretary_headers,
        )
        assert created.status_code == 201
        assert created.json()["church_id"] == church_a.id
        mission_id = created.json()["id"]

        updated = client.put(
            f"{CHURCHES}/{church_a.id}/missions/{mission_id}",
            json={"name": None, "responsible_phone": "6000-0000"},
            headers=secretary_headers,
        )
        assert updated.status_code == 200
        assert updated.json()["name"] == "Misión Costa"
        assert updated.json()["responsible_phone"] == "6000-0000"

        assert client.delete(
            f"{CHURCHES}/{church_a.id}/missions/{mission_id}", headers=secretary_headers
        ).status_code == 403
        deleted = client.delete(f"{CHURCHES}/{church_a.id}/missions/{mission_id}", headers=admin_headers)
        assert deleted.status_code == 200
        assert deleted.json() == {"message": "Mission deleted"}

    def test_leader_cannot_create(self, client: TestClient, church_a, leader_headers):
        response = client.post(f"{CHURCHES}/{church_a.id}/missions", json={"name": "Misión"}, headers=leader_headers)
        assert response.status_code == 403

    def test_foreign_church_forbidden(self, client: TestClient, church_b, admin_headers):
        response = client.post(f"{CHURCHES}/{church_b.id}/missions", json={"name": "Misión"}, headers=admin_headers)
        assert response.status_code == 403

    def test_responsible_from_other_church(self, client: TestClient, church_a, church_b, make_member, admin_headers):
        outsider = make_member(church_b)
        response = client.post(
            f"{CHURCHES}/{church_a.id}/missions",
            json={"name": "Misión", "responsible_id": outsider.id},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_mission_under_wrong_church_not_found(self, client: TestClient, church_a, church_b, super_admin_headers, db):
        mission = Mission(church_id=church_b.id, name="Misión")
        db.add(mission)
        db.commit()

        response = client.delete(f"{CHURCHES}/{church_a.id}/missions/{mission.id}", headers=super_admin_headers)
        assert response.status_code == 404
