"""Tests for error types and the global exception handlers."""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.testclient import TestClient
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError

from app.core.errors import (
    APIError,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    UnauthorizedError,
    setup_error_handlers,
)
from app.core.middleware import RequestIDMiddleware


class TestAPIError:
    """Test APIError exception classes."""

    def test_api_error_creation(self):
        error = APIError(
            status_code=400,
            error_code="test_error",
            message="Test error message",
            details={"key": "value"},
        )

        assert error.status_code == 400
        assert error.error_code == "test_error"
        assert error.details == {"key": "value"}
        assert str(error) == "Test error message"

    def test_not_found_error(self):
        error = NotFoundError("Member", 42)

        assert error.status_code == status.HTTP_404_NOT_FOUND
        assert error.error_code == "not_found"
        assert error.message == "Member not found: 42"
        assert error.details == {"resource": "Member", "identifier": "42"}

    def test_not_found_error_no_identifier(self):
        error = NotFoundError("Member")

        assert error.message == "Member not found"
        assert error.details["identifier"] is None

    def test_bad_request_conflict_forbidden(self):
        assert BadRequestError("nope").status_code == status.HTTP_400_BAD_REQUEST
        assert ConflictError("dup", {"field": "email"}).status_code == status.HTTP_409_CONFLICT
        assert ForbiddenError().status_code == status.HTTP_403_FORBIDDEN

    def test_unauthorized_error_custom_code(self):
        """Expired tokens are distinguishable from other auth failures."""
        error = UnauthorizedError("Token has expired", error_code="token_expired")

        assert error.status_code == status.HTTP_401_UNAUTHORIZED
        assert error.error_code == "token_expired"


class Payload(BaseModel):
    count: int


def _make_app() -> FastAPI:
    test_app = FastAPI()
    setup_error_handlers(test_app, debug=False)
    test_app.add_middleware(RequestIDMiddleware)

    @test_app.get("/missing")
    async def missing():
        raise NotFoundError("Event", 7)

    @test_app.get("/unauthorized")
    async def unauthorized():
        raise UnauthorizedError()

    @test_app.get("/integrity")
    async def integrity():
        raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

    @test_app.get("/boom")
    async def boom(request: Request):
        raise RuntimeError("secret detail")

    @test_app.post("/validate")
    async def validate(payload: Payload):
        return payload

    return test_app


class TestErrorHandlers:
    def test_api_error_shape(self):
        client = TestClient(_make_app())
        response = client.get("/missing", headers={"X-Request-ID": "req-1"})

        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "not_found"
        assert error["message"] == "Event not found: 7"
        assert error["request_id"] == "req-1"
        assert error["details"]["resource"] == "Event"

    def test_unauthorized_sets_www_authenticate(self):
        client = TestClient(_make_app())
        response = client.get("/unauthorized")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_integrity_error_becomes_conflict(self):
        client = TestClient(_make_app())
        response = client.get("/integrity")

        assert response.status_code == 409
        assert response.json()["error"]["code"] == "conflict"

    def test_validation_error_lists_fields(self):
        client = TestClient(_make_app())
        response = client.post("/validate", json={"count": "many"})

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "validation_error"
        fields = [e["field"] for e in error["details"]["errors"]]
        assert "body.count" in fields

    def test_unhandled_exception_hides_details(self):
        """Internal errors never leak the exception message outside debug mode."""
        client = TestClient(_make_app(), raise_server_exceptions=False)
        response = client.get("/boom")

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "internal_error"
        assert "secret detail" not in response.text
