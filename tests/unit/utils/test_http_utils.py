import pytest
from flask import Flask

from app.domain.exceptions import (
    AnalysisRateLimitError,
    ExternalServiceError,
    InsufficientDataError,
    NotFoundError,
)
from app.utils.http import error_response, safe_route, success_response


@pytest.fixture()
def flask_app():
    return Flask(__name__)


def test_success_envelope(flask_app):
    with flask_app.app_context():
        response = success_response({"value": 1}, 201, message="created")

    assert response.status_code == 201
    assert response.get_json() == {"ok": True, "data": {"value": 1}, "error": None, "message": "created"}


def test_error_envelope_merges_details(flask_app):
    with flask_app.app_context():
        response = error_response("Invalid request", 400, details={"field": "interval"})

    body = response.get_json()
    assert body["ok"] is False
    assert body["data"] is None
    assert body["error"]["message"] == "Invalid request"
    assert body["error"]["field"] == "interval"
    assert body["details"] == {"field": "interval"}
    assert "timestamp" in body["error"]


def test_rate_limit_response_sets_retry_after_header(flask_app):
    with flask_app.app_context():
        response = error_response("Mohon tunggu", 429, details={"retryAfter": 7})

    assert response.headers["Retry-After"] == "7"
    assert response.get_json()["error"]["retryAfter"] == 7


@pytest.mark.parametrize(
    ("exc", "status"),
    [
        (InsufficientDataError(time_range="24 jam terakhir"), 400),
        (NotFoundError("missing"), 404),
        (AnalysisRateLimitError(3.2), 429),
        (ExternalServiceError("upstream down"), 502),
        (RuntimeError("secret internals"), 500),
    ],
)
def test_safe_route_maps_exceptions(flask_app, exc, status):
    @safe_route("Failed")
    def handler():
        raise exc

    with flask_app.app_context():
        response = handler()

    assert response.status_code == status
    body = response.get_json()
    assert body["ok"] is False
    if status >= 500:
        # Internals are logged, never returned
        assert "secret" not in body["message"]
        assert "upstream" not in body["message"]


def test_safe_route_passes_client_message_and_detail(flask_app):
    @safe_route("Failed")
    def handler():
        raise AnalysisRateLimitError(3.2)

    with flask_app.app_context():
        response = handler()

    assert response.headers["Retry-After"] == "4"
    assert response.get_json()["message"] == "Mohon tunggu 4 detik sebelum analisis berikutnya."
