from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from google.auth.exceptions import RefreshError

from creative_upload import google_clients
from creative_upload.main import create_app


@pytest.fixture()
def api_client(upload_service):
    with TestClient(create_app(upload_service=upload_service)) as client:
        yield client


def test_debug_google_oauth_returns_token_sample(api_client, monkeypatch):
    monkeypatch.setattr(google_clients, "get_google_credentials", lambda: object())
    monkeypatch.setattr(google_clients, "fetch_access_token", lambda _creds: "ya29.a0AfH6SMBx-abcdefghijklmnopqrstuvwxyz")

    resp = api_client.get("/api/debug-google-oauth")

    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is True
    assert body["accessTokenSample"] == "ya29.a0AfH6SMBx-abcdefghi..."
    assert "version" in body


def test_debug_google_oauth_reports_missing_oauth_fields(api_client, monkeypatch):
    def not_configured():
        raise google_clients.GoogleAuthNotConfigured("Google auth not configured.")

    monkeypatch.setattr(google_clients, "get_google_credentials", not_configured)
    monkeypatch.setenv("GOOGLE_OAUTH_CLIENT_ID", "client-id")
    monkeypatch.delenv("GOOGLE_OAUTH_CLIENT_SECRET", raising=False)
    monkeypatch.delenv("GOOGLE_OAUTH_REFRESH_TOKEN", raising=False)

    resp = api_client.get("/api/debug-google-oauth")

    assert resp.status_code == 400
    body = resp.json()
    assert body["ok"] is False
    assert body["have"] == {"clientId": True, "clientSecret": False, "refreshToken": False}


def test_debug_google_oauth_refresh_failure_is_500(api_client, monkeypatch):
    def refresh_fails():
        raise RefreshError("invalid_grant: Bad Request")

    monkeypatch.setattr(google_clients, "get_google_credentials", refresh_fails)

    resp = api_client.get("/api/debug-google-oauth")

    assert resp.status_code == 500
    body = resp.json()
    assert body["ok"] is False
    assert "invalid_grant" in body["details"]


def test_oauth_credentials_are_loaded_from_split_env(monkeypatch):
    refreshed: list[object] = []
    for var_name in ("GOOGLE_APPLICATION_CREDENTIALS", "GOOGLE_SERVICE_ACCOUNT_JSON", "GOOGLE_CLIENT_EMAIL"):
        monkeypatch.delenv(var_name, raising=False)
    monkeypatch.setenv("GOOGLE_OAUTH_CLIENT_ID", "client-id")
    monkeypatch.setenv("GOOGLE_OAUTH_CLIENT_SECRET", "client-secret")
    monkeypatch.setenv("GOOGLE_OAUTH_REFRESH_TOKEN", "refresh-token")
    monkeypatch.setattr(
        google_clients.oauth2_credentials.Credentials,
        "refresh",
        lambda self, request: refreshed.append(request),
    )

    creds = google_clients.get_google_credentials()

    assert creds.refresh_token == "refresh-token"
    assert creds.client_id == "client-id"
    assert len(refreshed) == 1


def test_invalid_service_account_json_is_reported(monkeypatch):
    monkeypatch.delenv("GOOGLE_APPLICATION_CREDENTIALS", raising=False)
    monkeypatch.setenv("GOOGLE_SERVICE_ACCOUNT_JSON", "{not json")

    with pytest.raises(google_clients.GoogleAuthNotConfigured, match="GOOGLE_SERVICE_ACCOUNT_JSON"):
        google_clients.get_google_credentials()
