"""Tests for per-church login branding."""

from __future__ import annotations

from fastapi.testclient import TestClient

BRANDING = "/api/v1/branding"

PNG_BYTES = b"\x89PNG\r\n\x1a\n fake logo"


class TestPublicBranding:
    def test_no_auth_needed(self, client: TestClient, church_a):
        response = client.get(f"{BRANDING}/{church_a.id}")

        assert response.status_code == 200
        assert response.json() == {
            "church_id": church_a.id,
            "name": "Iglesia Central",
            "login_title": "Iglesia Central",
            "login_logo_url": None,
        }

    def test_unknown_church(self, client: TestClient, db):
        assert client.get(f"{BRANDING}/99999").status_code == 404


class TestBrandingAdmin:
    def test_update_title(self, client: TestClient, church_a, admin_headers):
        response = client.put(
            f"{BRANDING}/{church_a.id}", json={"login_title": "Bienvenidos"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert response.json()["branding"]["login_title"] == "Bienvenidos"

    def test_blank_title_falls_back_to_name(self, client: TestClient, church_a, admin_headers):
        client.put(f"{BRANDING}/{church_a.id}", json={"login_title": "Bienvenidos"}, headers=admin_headers)
        response = client.put(f"{BRANDING}/{church_a.id}", json={"login_title": ""}, headers=admin_headers)
        assert response.json()["branding"]["login_title"] == "Iglesia Central"

    def test_other_church_forbidden(self, client: TestClient, church_b, admin_headers):
        response = client.put(f"{BRANDING}/{church_b.id}", json={"login_title": "X"}, headers=admin_headers)
        assert response.status_code == 403

    def test_list_for_admin(self, client: TestClient, church_a, church_b, admin_headers, secretary_headers):
        assert [b["name"] for b in client.get(BRANDING, headers=admin_headers).json()] == ["Iglesia Central"]
        assert client.get(BRANDING, headers=secretary_headers).status_code == 403


class TestLogoUpload:
    def _upload(self, client, church, headers, name="logo.png", content=PNG_BYTES, content_type="image/png"):
        return client.post(
            f"{BRANDING}/{church.id}/logo",
            files={"logo": (name, content, content_type)},
            headers=headers,
        )

    def test_upload_replaces_previous(self, client: TestClient, church_a, admin_headers, upload_dir):
        first = self._upload(client, church_a, admin_headers).json()["login_logo_url"]
        assert first.startswith("/uploads/logos/logo-church-")
        first_path = upload_dir / first.removeprefix("/uploads/")
        assert first_path.read_bytes() == PNG_BYTES

        second = self._upload(client, church_a, admin_headers, name="nuevo.webp", content_type="image/webp")
        assert second.status_code == 200
        assert not first_path.exists()

        public = client.get(f"{BRANDING}/{church_a.id}").json()
        assert public["login_logo_url"] == second.json()["login_logo_url"]

    def test_missing_file(self, client: TestClient, church_a, admin_headers):
        response = client.post(f"{BRANDING}/{church_a.id}/logo", headers=admin_headers)
        assert response.status_code == 400

    def test_rejects_non_image(self, client: TestClient, church_a, admin_headers):
        response = self._upload(client, church_a, admin_headers, name="doc.pdf", content_type="application/pdf")
        assert response.status_code == 400

    def test_rejects_large_logo(self, client: TestClient, church_a, admin_headers, monkeypatch):
        from app.core.config import settings

        monkeypatch.setattr(settings, "max_upload_bytes", 4)
        assert self._upload(client, church_a, admin_headers).status_code == 400

    def test_delete_logo(self, client: TestClient, church_a, admin_headers, upload_dir):
        url = self._upload(client, church_a, admin_headers).json()["login_logo_url"]

        response = client.delete(f"{BRANDING}/{church_a.id}/logo", headers=admin_headers)

        assert response.status_code == 200
        assert not (upload_dir / url.removeprefix("/uploads/")).exists()
        assert client.get(f"{BRANDING}/{church_a.id}").json()["login_logo_url"] is None
