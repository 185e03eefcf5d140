"""Tests for user administration routes."""

from __future__ import annotations

from fastapi.testclient import TestClient

from app.common.models import PasswordResetCode, User
from app.core.roles import RoleName

USERS = "/api/v1/users"


class TestListUsers:
    def test_admin_sees_own_church_only(
        self, client: TestClient, admin_user, leader_user, other_admin, super_admin, admin_headers
    ):
        data = client.get(USERS, headers=admin_headers).json()

        emails = {u["email"] for u in data["items"]}
        assert emails == {"admin@example.com", "lider@example.com"}
        assert data["pagination"]["total"] == 2

    def test_super_admin_sees_everyone(self, client: TestClient, admin_user, other_admin, super_admin_headers):
        data = client.get(USERS, headers=super_admin_headers).json()
        assert data["pagination"]["total"] == 3

    def test_search_and_role_filter(self, client: TestClient, roles, admin_user, leader_user, admin_headers):
        data = client.get(f"{USERS}?search=LIDER", headers=admin_headers).json()
        assert [u["email"] for u in data["items"]] == ["lider@example.com"]

        leader_role = roles[RoleName.LEADER.value]
        data = client.get(f"{USERS}?role_id={leader_role}", headers=admin_headers).json()
        assert [u["role_name"] for u in data["items"]] == [RoleName.LEADER.value]

    def test_secretary_forbidden(self, client: TestClient, secretary_headers):
        assert client.get(USERS, headers=secretary_headers).status_code == 403

    def test_roles_catalog(self, client: TestClient, admin_headers):
        names = [r["name"] for r in client.get(f"{USERS}/roles", headers=admin_headers).json()]
        assert set(names) == {role.value for role in RoleName}


class TestCreateUser:
    def test_defaults_to_admins_church(self, client: TestClient, roles, church_a, admin_headers):
        response = client.post(
            USERS,
            json={
                "email": "Nueva@Example.com",
                "password": "secret123",
                "full_name": "Nueva Secretaria",
                "role_id": roles[RoleName.SECRETARY.value],
            },
            headers=admin_headers,
        )

        assert response.status_code == 201
        user = response.json()["user"]
        assert user["email"] == "nueva@example.com"
        assert user["church_id"] == church_a.id
        assert user["church_name"] == "Iglesia Central"

    def test_admin_cannot_grant_super_admin(self, client: TestClient, roles, admin_headers):
        response = client.post(
            USERS,
            json={
                "email": "root2@example.com",
                "password": "secret123",
                "full_name": "Root",
                "role_id": roles[RoleName.SUPER_ADMIN.value],
            },
            headers=admin_headers,
        )
        assert response.status_code == 403

    def test_admin_cannot_target_other_church(self, client: TestClient, roles, church_b, admin_headers):
        response = client.post(
            USERS,
            json={
                "email": "x@example.com",
                "password": "secret123",
                "full_name": "X",
                "role_id": roles[RoleName.LEADER.value],
                "church_id": church_b.id,
            },
            headers=admin_headers,
        )
        assert response.status_code == 403

    def test_super_admin_needs_church_for_regular_roles(self, client: TestClient, roles, super_admin_headers):
        body = {
            "email": "x@example.com",
            "password": "secret123",
            "full_name": "X",
            "role_id": roles[RoleName.LEADER.value],
        }
        assert client.post(USERS, json=body, headers=super_admin_headers).status_code == 400

        body["role_id"] = roles[RoleName.SUPER_ADMIN.value]
        assert client.post(USERS, json=body, headers=super_admin_headers).status_code == 201

    def test_duplicate_email(self, client: TestClient, roles, leader_user, admin_headers):
        response = client.post(
            USERS,
            json={
                "email": "lider@example.com",
                "password": "secret123",
                "full_name": "Otro",
                "role_id": roles[RoleName.LEADER.value],
            },
            headers=admin_headers,
        )
        assert response.status_code == 409

    def test_invalid_role(self, client: TestClient, roles, admin_headers):
        response = client.post(
            USERS,
            json={"email": "x@example.com", "password": "secret123", "full_name": "X", "role_id": 999},
            headers=admin_headers,
        )
        assert response.status_code == 400


class TestUpdateAndDeleteUser:
    def test_deactivate_and_change_password(self, client: TestClient, leader_user, admin_headers, db):
        response = client.put(
            f"{USERS}/{leader_user.id}",
            json={"is_active": False, "password": "otra123"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["user"]["is_active"] is False
        login = client.post("/api/v1/auth/login", json={"email": "lider@example.com", "password": "otra123"})
        assert login.status_code == 401
        assert login.json()["error"]["message"] == "Account is inactive"

    def test_foreign_user_forbidden(self, client: TestClient, other_admin, admin_headers):
        response = client.put(f"{USERS}/{other_admin.id}", json={"full_name": "X"}, headers=admin_headers)
        assert response.status_code == 403

    def test_missing_user(self, client: TestClient, admin_headers):
        assert client.get(f"{USERS}/99999", headers=admin_headers).status_code == 404

    def test_delete(self, client: TestClient, leader_user, admin_headers, db):
        client.post("/api/v1/auth/forgot-password", json={"email": "lider@example.com"})

        response = client.delete(f"{USERS}/{leader_user.id}", headers=admin_headers)

        assert response.status_code == 200
        db.expire_all()
        assert db.get(User, leader_user.id) is None
        assert db.query(PasswordResetCode).count() == 0

    def test_cannot_delete_self(self, client: TestClient, admin_user, admin_headers):
        response = client.delete(f"{USERS}/{admin_user.id}", headers=admin_headers)
        assert response.status_code == 400
