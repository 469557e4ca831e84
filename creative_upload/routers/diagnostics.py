from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import ORJSONResponse
from google.auth.exceptions import GoogleAuthError

from creative_upload import google_clients
from creative_upload.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["diagnostics"])

_TOKEN_SAMPLE_LENGTH = 25


@router.get("/debug-google-oauth")
async def debug_google_oauth():
    """Confirm the Drive credential can mint an access token without exposing it."""
    try:
        creds = await run_in_threadpool(google_clients.get_google_credentials)
        token = await run_in_threadpool(google_clients.fetch_access_token, creds)
    except google_clients.GoogleAuthNotConfigured as exc:
        return ORJSONResponse(
            status_code=400,
            content={
                "ok": False,
                "error": str(exc),
                "version": settings.API_VERSION,
                "have": google_clients.oauth_env_presence(),
            },
        )
    except GoogleAuthError as exc:
        logger.exception("google_oauth.refresh_failed")
        return ORJSONResponse(
            status_code=500,
            content={
                "ok": False,
                "error": "Failed to obtain a Google access token.",
                "version": settings.API_VERSION,
                "details": str(exc),
            },
        )

    return {
        "ok": True,
        "version": settings.API_VERSION,
        "message": "Access token retrieved.",
        "accessTokenSample": token[:_TOKEN_SAMPLE_LENGTH] + "...",
    }
