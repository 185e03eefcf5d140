"""Tests for the ministerial position catalog."""

from __future__ import annotations

from fastapi.testclient import TestClient

from app.common.models import Member, MinisterialPosition
from app.positions.service import DEFAULT_POSITIONS

POSITIONS = "/api/v1/ministerial-positions"


class TestPositions:
    def test_create_and_list(self, client: TestClient, church_a, admin_headers, visitor_headers):
        response = client.post(POSITIONS, json={"name": " Pastor "}, headers=admin_headers)
        assert response.status_code == 201
        assert response.json()["name"] == "Pastor"

        listed = client.get(POSITIONS, headers=visitor_headers).json()
        assert [p["name"] for p in listed] == ["Pastor"]

    def test_duplicate_name_conflict(self, client: TestClient, church_a, admin_headers):
        client.post(POSITIONS, json={"name": "Pastor"}, headers=admin_headers)
        response = client.post(POSITIONS, json={"name": "Pastor"}, headers=admin_headers)
        assert response.status_code == 409

    def test_same_name_in_other_church_allowed(self, client: TestClient, church_a, admin_headers, other_admin_headers):
        assert client.post(POSITIONS, json={"name": "Pastor"}, headers=admin_headers).status_code == 201
        assert client.post(POSITIONS, json={"name": "Pastor"}, headers=other_admin_headers).status_code == 201

    def test_secretary_cannot_create(self, client: TestClient, church_a, secretary_headers):
        assert client.post(POSITIONS, json={"name": "Pastor"}, headers=secretary_headers).status_code == 403

    def test_seed_defaults_is_idempotent(self, client: TestClient, church_a, admin_headers):
        first = client.post(f"{POSITIONS}/seed-defaults", headers=admin_headers)
        assert first.status_code == 201
        assert len(first.json()["created"]) == len(DEFAULT_POSITIONS)

        second = client.post(f"{POSITIONS}/seed-defaults", headers=admin_headers)
        assert second.json()["created"] == []

    def test_rename_propagates_to_members(self, client: TestClient, church_a, make_member, admin_headers, db):
        position = MinisterialPosition(church_id=church_a.id, name="Predicador Ordenado")
        db.add(position)
        db.commit()
        member = make_member(church_a, church_role="Predicador Ordenado", position_id=position.id)

        response = client.put(
            f"{POSITIONS}/{position.id}", json={"name": "Diácono Ordenado"}, headers=admin_headers
        )

        assert response.status_code == 200
        data = response.json()
        assert data["members_updated"] == 1
        assert data["stats"]["role_counts"]["ordained_deacons"] == 1
        db.refresh(member)
        assert member.church_role == "Diácono Ordenado"

    def test_delete_in_use_deactivates(self, client: TestClient, church_a, make_member, admin_headers, db):
        position = MinisterialPosition(church_id=church_a.id, name="Pastor")
        db.add(position)
        db.commit()
        make_member(church_a, church_role="Pastor", position_id=position.id)

        response = client.delete(f"{POSITIONS}/{position.id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["deactivated"] is True
        db.refresh(position)
        assert position.is_active is False
        assert db.query(Member).one().position_id == position.id

        listed = client.get(POSITIONS, headers=admin_headers).json()
        assert listed == []
        listed = client.get(f"{POSITIONS}?include_inactive=true", headers=admin_headers).json()
        assert len(listed) == 1

    def test_delete_unused_removes(self, client: TestClient, church_a, admin_headers, db):
        position = MinisterialPosition(church_id=church_a.id, name="Pastor")
        db.add(position)
        db.commit()
        position_id = position.id

        response = client.delete(f"{POSITIONS}/{position_id}", headers=admin_headers)

        assert response.json()["deactivated"] is False
        db.expire_all()
        assert db.get(MinisterialPosition, position_id) is None

    def test_foreign_position_forbidden(self, client: TestClient, church_b, admin_headers, db):
        position = MinisterialPosition(church_id=church_b.id, name="Pastor")
        db.add(position)
        db.commit()

        response = client.put(f"{POSITIONS}/{position.id}", json={"name": "X"}, headers=admin_headers)
        assert response.status_code == 403

    def test_inactive_position_not_assignable(self, client: TestClient, church_a, admin_headers, db):
        position = MinisterialPosition(church_id=church_a.id, name="Pastor", is_active=False)
        db.add(position)
        db.commit()

        response = client.post(
            "/api/v1/members",
            json={"first_name": "Ana", "last_name": "Pérez", "position_id": position.id},
            headers=admin_headers,
        )
        assert response.status_code == 400
