"""Tests for the response envelope and the exception-to-status mapping."""

from datetime import timezone

import pytest
from fastapi import FastAPI
from starlette.testclient import TestClient

from api.base import ErrorCodes, document_response, error_response, success_response
from api.errors import register_error_handlers
from auth.exceptions import (
    LicenseRejectedError, ProfileNotFoundError, SessionExpiredError, SubscriptionExpiredError,
)
from core.documents import RenderedDocument
from core.exceptions import MissingOwnerError, NotFoundError, TransientIOError, ValidationError


class TestEnvelope:
    """Tests for success_response() and error_response()."""

    def test_success_structure(self):
        resp = success_response({"foo": "bar"})
        assert resp.success is True
        assert resp.data == {"foo": "bar"}
        assert resp.error is None

    def test_error_structure(self):
        resp = error_response(ErrorCodes.NOT_FOUND, "Work order not found")
        assert resp.success is False
        assert resp.data is None
        assert resp.error.code == "NOT_FOUND"

    def test_meta(self):
        resp = success_response({})
        assert resp.meta.request_id
        assert resp.meta.timestamp.tzinfo == timezone.utc


class TestDocumentResponse:
    """PDF downloads skip the envelope."""

    def test_headers(self):
        document = RenderedDocument(filename="OS_3F9A_Maria.pdf", content=b"%PDF-1.4", page_count=2)

        response = document_response(document)

        assert response.body == b"%PDF-1.4"
        assert response.media_type == "application/pdf"
        assert response.headers["content-disposition"] == 'attachment; filename="OS_3F9A_Maria.pdf"'
        assert response.headers["x-page-count"] == "2"


@pytest.fixture
def client():
    """App whose /raise/{name} route raises the named exception."""
    app = FastAPI()
    register_error_handlers(app)

    errors = {
        "validation": ValidationError("A vehicle is required"),
        "not_found": NotFoundError("Work order x not found"),
        "transient": TransientIOError("connection reset"),
        "no_owner": MissingOwnerError("no owner"),
        "session": SessionExpiredError("Session expired"),
        "subscription": SubscriptionExpiredError("expired"),
        "license": LicenseRejectedError("Código inválido"),
        "profile": ProfileNotFoundError("no profile"),
        "value": ValueError("bad input"),
        "crash": RuntimeError("boom"),
    }

    @app.get("/raise/{name}")
    async def raise_error(name: str):
        raise errors[name]

    return TestClient(app, raise_server_exceptions=False)


class TestErrorHandlers:
    """Each failure kind maps to one status and code."""

    @pytest.mark.parametrize("name, status, code", [
        ("validation", 400, "VALIDATION_ERROR"),
        ("not_found", 404, "NOT_FOUND"),
        ("transient", 503, "SERVICE_UNAVAILABLE"),
        ("no_owner", 401, "NOT_AUTHENTICATED"),
        ("session", 401, "SESSION_EXPIRED"),
        ("subscription", 402, "SUBSCRIPTION_EXPIRED"),
        ("license", 400, "LICENSE_REJECTED"),
        ("profile", 403, "PROFILE_REQUIRED"),
        ("value", 400, "INVALID_REQUEST"),
        ("crash", 500, "INTERNAL_ERROR"),
    ])
    def test_mapping(self, client, name, status, code):
        response = client.get(f"/raise/{name}")

        assert response.status_code == status
        assert response.json()["error"]["code"] == code

    def test_validation_message_passed_through(self, client):
        response = client.get("/raise/validation")
        assert response.json()["error"]["message"] == "A vehicle is required"

    def test_internal_error_hides_details(self, client):
        response = client.get("/raise/crash")
        assert "boom" not in response.json()["error"]["message"]
