from __future__ import annotations

import base64
import json
from urllib.parse import parse_qs, urlparse

import structlog

from app.core.config import settings
from app.core.logging import dict_tracebacks, setup_logging


def _b64(data: dict) -> str:
    return "base64-" + base64.urlsafe_b64encode(json.dumps(data).encode()).decode().rstrip("=")


def test_healthz_and_request_id(api) -> None:
    response = api.client.get("/healthz", headers={"X-Request-ID": "req-42"})
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-Request-ID"] == "req-42"
    assert api.client.get("/healthz").headers["X-Request-ID"]


def test_malformed_body_is_validation_failed(api) -> None:
    response = api.client.post(
        "/api/missions",
        content=b"{not json",
        headers={**api.as_user("admin"), "content-type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["error"] == "ValidationFailed"


def test_bad_query_parameter_is_validation_failed(api) -> None:
    response = api.client.get("/api/missions", params={"limit": 0}, headers=api.as_user("admin"))
    assert response.status_code == 400
    assert response.json()["message"] == "Données invalides"


def test_email_callback_success(api) -> None:
    response = api.client.get(
        "/api/auth/callback",
        params={"token_hash": "valid-hash", "type": "email", "next": "/dashboard"},
        follow_redirects=False,
    )
    assert response.status_code == 307
    location = urlparse(response.headers["location"])
    assert location.path == "/dashboard"
    assert parse_qs(location.query) == {"message": ["email-verified"]}


def test_email_callback_failure_keeps_next_only(api) -> None:
    response = api.client.get(
        "/api/auth/callback",
        params={"token_hash": "expired", "type": "email", "next": "/dashboard"},
        follow_redirects=False,
    )
    location = urlparse(response.headers["location"])
    assert location.path == "/error"
    assert parse_qs(location.query) == {"next": ["/dashboard"]}


def test_email_callback_rejects_external_next(api) -> None:
    response = api.client.get(
        "/api/auth/callback",
        params={"token_hash": "valid-hash", "type": "email", "next": "//evil.example"},
        follow_redirects=False,
    )
    assert urlparse(response.headers["location"]).path == "/"


def test_email_callback_ignores_other_types(api) -> None:
    response = api.client.get(
        "/api/auth/callback", params={"token_hash": "valid-hash", "type": "recovery"}, follow_redirects=False
    )
    assert urlparse(response.headers["location"]).path == "/error"


def test_guard_runs_before_body_is_read(api) -> None:
    response = api.client.post(
        "/api/missions", content=b"{not json", headers={"content-type": "application/json"}
    )
    assert response.status_code == 401

    response = api.client.post(
        "/api/payments",
        content=b"{not json",
        headers={**api.as_user("staff"), "content-type": "application/json"},
    )
    assert response.status_code == 403


def test_json_array_body_is_validation_failed(api) -> None:
    response = api.client.post("/api/missions", json=["x"], headers=api.as_user("admin"))
    assert response.status_code == 400
    assert response.json()["details"] == ["Le corps de la requête doit être un objet JSON"]


def test_project_cookie_is_read_first(api, monkeypatch) -> None:
    monkeypatch.setattr(settings, "SUPABASE_URL", "https://abcd.supabase.co")
    monkeypatch.setattr(settings, "SESSION_COOKIE_NAME", None)
    api.provider.login(api.ids["admin"])
    api.client.cookies = {
        "sb-aaaa-auth-token": _b64({"access_token": "stale"}),
        "sb-abcd-auth-token": _b64({"access_token": f"token-{api.ids['admin']}"}),
    }
    response = api.client.get("/api/users/me")
    assert response.status_code == 200
    assert response.json()["id"] == api.ids["admin"]


def test_tracebacks_leave_out_frame_locals() -> None:
    def _provision(password: str) -> None:
        raise KeyError("id")

    try:
        _provision("S3cretPassw0rd!")
    except KeyError as exc:
        event = dict_tracebacks(None, "error", {"event": "unexpected_error", "exc_info": exc})

    assert "S3cretPassw0rd!" not in json.dumps(event, default=str)
    assert event["exception"][0]["exc_type"] == "KeyError"

    setup_logging()
    assert dict_tracebacks in structlog.get_config()["processors"]
