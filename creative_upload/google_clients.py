from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

import google.auth
from google.auth.credentials import Credentials
from google.auth.exceptions import DefaultCredentialsError
from google.auth.transport.requests import Request
from google.oauth2 import credentials as oauth2_credentials
from google.oauth2.service_account import Credentials as ServiceAccountCredentials
from googleapiclient.discovery import build

SCOPES = ["https://www.googleapis.com/auth/drive"]

OAUTH_ENV_VARS = {
    "clientId": "GOOGLE_OAUTH_CLIENT_ID",
    "clientSecret": "GOOGLE_OAUTH_CLIENT_SECRET",
    "refreshToken": "GOOGLE_OAUTH_REFRESH_TOKEN",
}


class GoogleAuthNotConfigured(RuntimeError):
    pass


def _service_account_from_info(info: dict) -> Optional[ServiceAccountCredentials]:
    if "client_email" in info and "private_key" in info:
        return ServiceAccountCredentials.from_service_account_info(info, scopes=SCOPES)
    return None


def _load_service_account_from_file(path: Path) -> Optional[ServiceAccountCredentials]:
    if not path.exists():
        return None
    return _service_account_from_info(json.loads(path.read_text(encoding="utf-8")))


def _load_service_account_from_json_env() -> Optional[ServiceAccountCredentials]:
    raw = os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON")
    if not raw:
        return None
    try:
        info = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise GoogleAuthNotConfigured("GOOGLE_SERVICE_ACCOUNT_JSON is not valid JSON.") from exc
    return _service_account_from_info(info)


def _load_service_account_from_env() -> Optional[ServiceAccountCredentials]:
    email = os.getenv("GOOGLE_CLIENT_EMAIL")
    key = os.getenv("GOOGLE_PRIVATE_KEY")
    if email and key:
        info = {
            "client_email": email,
            "private_key": key.replace("\\n", "\n"),
            "token_uri": "https://oauth2.googleapis.com/token",
        }
        return ServiceAccountCredentials.from_service_account_info(info, scopes=SCOPES)
    return None


def oauth_env_presence() -> dict[str, bool]:
    return {key: bool(os.getenv(var_name)) for key, var_name in OAUTH_ENV_VARS.items()}


def _load_oauth_credentials() -> Optional[oauth2_credentials.Credentials]:
    client_id = os.getenv(OAUTH_ENV_VARS["clientId"])
    client_secret = os.getenv(OAUTH_ENV_VARS["clientSecret"])
    refresh_token = os.getenv(OAUTH_ENV_VARS["refreshToken"])
    if client_id and client_secret and refresh_token:
        creds = oauth2_credentials.Credentials(
            token=None,
            refresh_token=refresh_token,
            client_id=client_id,
            client_secret=client_secret,
            token_uri="https://oauth2.googleapis.com/token",
            scopes=SCOPES,
        )
        creds.refresh(Request())
        return creds
    return None


def get_google_credentials() -> Credentials:
    """Return the current Drive credential from whichever scheme the deployment configures."""
    key_file = os.getenv("GOOGLE_APPLICATION_CREDENTIALS")
    if key_file:
        creds = _load_service_account_from_file(Path(key_file))
        if creds:
            return creds

    creds = _load_service_account_from_json_env()
    if creds:
        return creds

    creds = _load_service_account_from_env()
    if creds:
        return creds

    creds = _load_oauth_credentials()
    if creds:
        return creds

    # Fall back to Application Default Credentials (e.g., gcloud auth application-default login)
    try:
        creds, _ = google.auth.default(scopes=SCOPES)
        return creds
    except DefaultCredentialsError as exc:
        raise GoogleAuthNotConfigured(
            "Google auth not configured. Set GOOGLE_APPLICATION_CREDENTIALS, GOOGLE_SERVICE_ACCOUNT_JSON, "
            "service account envs (GOOGLE_CLIENT_EMAIL/GOOGLE_PRIVATE_KEY) or OAuth envs "
            "(GOOGLE_OAUTH_CLIENT_ID/GOOGLE_OAUTH_CLIENT_SECRET/GOOGLE_OAUTH_REFRESH_TOKEN), "
            "or configure Application Default Credentials."
        ) from exc


def fetch_access_token(creds: Credentials) -> str:
    if not creds.valid:
        creds.refresh(Request())
    if not creds.token:
        raise GoogleAuthNotConfigured("Google credential refresh returned no access token.")
    return creds.token


def get_drive_client(creds: Optional[Credentials] = None):
    return build("drive", "v3", credentials=creds or get_google_credentials(), cache_discovery=False)
