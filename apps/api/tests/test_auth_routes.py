"""Tests for authentication routes and bearer-token dependencies."""

from __future__ import annotations

from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy import select

from app.auth.utils import create_access_token
from app.common.models import PasswordResetCode, User, utcnow
from app.core.roles import RoleName

AUTH = "/api/v1/auth"


class TestRegisterEndpoint:
    def test_anonymous_register_gets_visitor_role(self, client: TestClient, roles, church_a):
        """role_id from an anonymous caller is ignored."""
        response = client.post(
            f"{AUTH}/register",
            json={
                "email": "Nuevo@Example.com",
                "password": "secret123",
                "full_name": "Nuevo Miembro",
                "role_id": roles[RoleName.ADMIN.value],
                "church_id": church_a.id,
            },
        )

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "nuevo@example.com"
        assert data["role_name"] == RoleName.VISITOR.value
        assert data["church_name"] == "Iglesia Central"

    def test_register_requires_church(self, client: TestClient, roles):
        response = client.post(
            f"{AUTH}/register",
            json={"email": "x@example.com", "password": "secret123", "full_name": "X"},
        )
        assert response.status_code == 400

    def test_duplicate_email_conflict(self, client: TestClient, admin_user, church_a):
        response = client.post(
            f"{AUTH}/register",
            json={
                "email": "ADMIN@example.com",
                "password": "secret123",
                "full_name": "Otro",
                "church_id": church_a.id,
            },
        )
        assert response.status_code == 409

    def test_admin_assigns_role_in_own_church(self, client: TestClient, roles, admin_headers):
        response = client.post(
            f"{AUTH}/register",
            json={
                "email": "sec@example.com",
                "password": "secret123",
                "full_name": "Secretaria",
                "role_id": roles[RoleName.SECRETARY.value],
            },
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["role_name"] == RoleName.SECRETARY.value

    def test_admin_cannot_assign_super_admin(self, client: TestClient, roles, admin_headers):
        response = client.post(
            f"{AUTH}/register",
            json={
                "email": "root2@example.com",
                "password": "secret123",
                "full_name": "Root",
                "role_id": roles[RoleName.SUPER_ADMIN.value],
            },
            headers=admin_headers,
        )
        assert response.status_code == 403


class TestLoginEndpoint:
    def test_login_success(self, client: TestClient, admin_user, db):
        response = client.post(
            f"{AUTH}/login", json={"email": "Admin@Example.com", "password": "secret123"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["access_token"]
        assert data["user"]["role_name"] == RoleName.ADMIN.value

        db.refresh(admin_user)
        assert admin_user.last_login is not None

    def test_login_wrong_password(self, client: TestClient, admin_user):
        response = client.post(
            f"{AUTH}/login", json={"email": "admin@example.com", "password": "wrong-pass"}
        )
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "unauthorized"

    def test_login_inactive_user(self, client: TestClient, make_user, church_a):
        make_user(RoleName.LEADER, church_a, email="off@example.com", is_active=False)
        response = client.post(
            f"{AUTH}/login", json={"email": "off@example.com", "password": "secret123"}
        )
        assert response.status_code == 401

    def test_token_from_login_authenticates(self, client: TestClient, admin_user):
        token = client.post(
            f"{AUTH}/login", json={"email": "admin@example.com", "password": "secret123"}
        ).json()["access_token"]

        response = client.get(f"{AUTH}/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert response.json()["id"] == admin_user.id


class TestBearerDependency:
    def test_missing_token(self, client: TestClient):
        response = client.get(f"{AUTH}/me")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "unauthorized"

    def test_garbage_token(self, client: TestClient):
        response = client.get(f"{AUTH}/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401

    def test_expired_token(self, client: TestClient, admin_user):
        token = create_access_token(
            {"id": admin_user.id, "email": admin_user.email, "role_id": admin_user.role_id},
            expires_delta=timedelta(seconds=-10),
        )
        response = client.get(f"{AUTH}/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "token_expired"

    def test_token_for_deactivated_user(self, client: TestClient, admin_user, admin_headers, db):
        admin_user.is_active = False
        db.commit()

        response = client.get(f"{AUTH}/me", headers=admin_headers)
        assert response.status_code == 401

    def test_role_gate_forbids(self, client: TestClient, visitor_user, visitor_headers):
        response = client.post(
            f"{AUTH}/admin-reset-password/{visitor_user.id}",
            json={"new_password": "another1"},
            headers=visitor_headers,
        )
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "forbidden"


class TestPasswordReset:
    def _request_code(self, client: TestClient, email: str) -> str:
        response = client.post(f"{AUTH}/forgot-password", json={"email": email})
        assert response.status_code == 200
        return response.json()["code"]

    def test_reset_flow(self, client: TestClient, leader_user):
        code = self._request_code(client, "lider@example.com")
        assert len(code) == 6

        response = client.post(
            f"{AUTH}/reset-password",
            json={"email": "lider@example.com", "code": code, "new_password": "nueva123"},
        )
        assert response.status_code == 200

        login = client.post(
            f"{AUTH}/login", json={"email": "lider@example.com", "password": "nueva123"}
        )
        assert login.status_code == 200

    def test_code_is_single_use(self, client: TestClient, leader_user):
        code = self._request_code(client, "lider@example.com")
        body = {"email": "lider@example.com", "code": code, "new_password": "nueva123"}

        assert client.post(f"{AUTH}/reset-password", json=body).status_code == 200
        assert client.post(f"{AUTH}/reset-password", json=body).status_code == 400

    def test_expired_code_rejected(self, client: TestClient, leader_user, db):
        code = self._request_code(client, "lider@example.com")
        reset = db.execute(
            select(PasswordResetCode).where(PasswordResetCode.user_id == leader_user.id)
        ).scalar_one()
        reset.expires_at = utcnow() - timedelta(minutes=1)
        db.commit()

        response = client.post(
            f"{AUTH}/reset-password",
            json={"email": "lider@example.com", "code": code, "new_password": "nueva123"},
        )
        assert response.status_code == 400

    def test_new_code_invalidates_previous(self, client: TestClient, leader_user, monkeypatch):
        codes = iter(["111111", "222222"])
        monkeypatch.setattr("app.auth.service.generate_reset_code", lambda: next(codes))

        first = self._request_code(client, "lider@example.com")
        self._request_code(client, "lider@example.com")

        response = client.post(
            f"{AUTH}/reset-password",
            json={"email": "lider@example.com", "code": first, "new_password": "nueva123"},
        )
        assert response.status_code == 400

    def test_unknown_email_gets_generic_answer(self, client: TestClient, roles):
        response = client.post(f"{AUTH}/forgot-password", json={"email": "ghost@example.com"})
        assert response.status_code == 200
        assert response.json()["code"] is None

    def test_code_hidden_in_production(self, client: TestClient, leader_user, monkeypatch):
        from app.core.config import settings

        monkeypatch.setattr(settings, "app_env", "production")
        response = client.post(f"{AUTH}/forgot-password", json={"email": "lider@example.com"})
        assert response.json()["code"] is None


class TestAdminResetPassword:
    def test_admin_resets_own_church_user(self, client: TestClient, leader_user, admin_headers):
        response = client.post(
            f"{AUTH}/admin-reset-password/{leader_user.id}",
            json={"new_password": "cambiada1"},
            headers=admin_headers,
        )
        assert response.status_code == 200

        login = client.post(
            f"{AUTH}/login", json={"email": "lider@example.com", "password": "cambiada1"}
        )
        assert login.status_code == 200

    def test_admin_of_other_church_forbidden(self, client: TestClient, leader_user, other_admin_headers):
        response = client.post(
            f"{AUTH}/admin-reset-password/{leader_user.id}",
            json={"new_password": "cambiada1"},
            headers=other_admin_headers,
        )
        assert response.status_code == 403

    def test_missing_user(self, client: TestClient, admin_headers):
        response = client.post(
            f"{AUTH}/admin-reset-password/99999",
            json={"new_password": "cambiada1"},
            headers=admin_headers,
        )
        assert response.status_code == 404

    def test_super_admin_resets_anyone(self, client: TestClient, db, other_admin, super_admin_headers):
        response = client.post(
            f"{AUTH}/admin-reset-password/{other_admin.id}",
            json={"new_password": "cambiada1"},
            headers=super_admin_headers,
        )
        assert response.status_code == 200
        assert db.get(User, other_admin.id) is not None
