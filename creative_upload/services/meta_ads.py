from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from creative_upload.config import settings
from creative_upload.errors import AdPlatformAuthError, AdPlatformRejected, NotAnImage
from creative_upload.types import DEFAULT_MEDIA_TYPE, ImageUploadResult, VideoUploadResult

logger = logging.getLogger("meta.ads")

# Graph error codes for invalid, expired or revoked access tokens.
_AUTH_ERROR_CODES = {102, 190}


def normalize_ad_account_id(ad_account_id: str) -> str:
    ad_account_id = ad_account_id.strip()
    if ad_account_id.startswith("act_"):
        return ad_account_id
    return f"act_{ad_account_id}"


def _is_auth_failure(status_code: int, error_payload: Any) -> bool:
    if status_code == 401:
        return True
    error = error_payload.get("error") if isinstance(error_payload, dict) else None
    if not isinstance(error, dict):
        return False
    return error.get("type") == "OAuthException" and error.get("code") in _AUTH_ERROR_CODES


def _error_message(error_payload: Any) -> Optional[str]:
    error = error_payload.get("error") if isinstance(error_payload, dict) else None
    if isinstance(error, dict) and isinstance(error.get("message"), str):
        return error["message"]
    return None


class MetaAdsClient:
    def __init__(
        self,
        *,
        api_version: Optional[str] = None,
        base_url: Optional[str] = None,
        video_base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_version = api_version or settings.META_GRAPH_API_VERSION
        self.base_url = (base_url or settings.META_GRAPH_API_BASE_URL).rstrip("/")
        self.video_base_url = (video_base_url or settings.META_GRAPH_VIDEO_API_BASE_URL).rstrip("/")
        self.timeout = httpx.Timeout(timeout_seconds or settings.META_REQUEST_TIMEOUT_SECONDS)
        # Video bodies can be large; only the connect phase is bounded.
        self.video_timeout = httpx.Timeout(None, connect=self.timeout.connect)
        self._transport = transport

    async def _request(
        self,
        method: str,
        url: str,
        *,
        access_token: str,
        data: Optional[dict[str, Any]] = None,
        files: Optional[dict[str, Any]] = None,
        timeout: Optional[httpx.Timeout] = None,
    ) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=timeout or self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method,
                    url,
                    params={"access_token": access_token},
                    data=data,
                    files=files,
                )
        except httpx.RequestError as exc:
            raise AdPlatformRejected(f"Meta Graph API request failed: {exc}") from exc

        if not response.is_success:
            error_payload: Any = None
            try:
                error_payload = response.json()
            except ValueError:
                error_payload = {"text": response.text}
            detail = _error_message(error_payload)
            message = f"Meta Graph API error ({response.status_code})."
            if detail:
                message = f"Meta Graph API error ({response.status_code}): {detail}"
            if _is_auth_failure(response.status_code, error_payload):
                raise AdPlatformAuthError(message, error_payload=error_payload)
            raise AdPlatformRejected(message, error_payload=error_payload)

        try:
            body = response.json()
        except ValueError as exc:
            raise AdPlatformRejected("Meta Graph API returned a non-JSON response.") from exc
        if not isinstance(body, dict):
            raise AdPlatformRejected("Meta Graph API returned an unexpected response.", error_payload=body)
        return body

    async def upload_image(
        self,
        *,
        content: bytes,
        media_type: Optional[str],
        file_name: str,
        ad_account_id: str,
        access_token: str,
    ) -> ImageUploadResult:
        if not media_type or not media_type.startswith("image/"):
            raise NotAnImage(f"File is not an image (content type: {media_type or 'unknown'}).")

        url = f"{self.base_url}/{self.api_version}/{normalize_ad_account_id(ad_account_id)}/adimages"
        files = {"filename": (file_name, content, media_type)}
        body = await self._request("POST", url, access_token=access_token, files=files)

        # Meta keys the images map by the submitted file name, but not reliably.
        images = body.get("images")
        entry = next(iter(images.values()), None) if isinstance(images, dict) else None
        image_hash = entry.get("hash") if isinstance(entry, dict) else None
        if not image_hash:
            raise AdPlatformRejected("Meta image upload response did not include an image hash.", error_payload=body)

        logger.info("meta.image_uploaded", extra={"ad_account_id": ad_account_id, "image_hash": image_hash})
        return ImageUploadResult(image_hash=image_hash)

    async def upload_video(
        self,
        *,
        content: bytes,
        media_type: Optional[str],
        file_name: str,
        ad_account_id: str,
        access_token: str,
    ) -> VideoUploadResult:
        url = f"{self.video_base_url}/{self.api_version}/{normalize_ad_account_id(ad_account_id)}/advideos"
        files = {"source": (file_name, content, media_type or DEFAULT_MEDIA_TYPE)}
        body = await self._request(
            "POST",
            url,
            access_token=access_token,
            data={"name": file_name},
            files=files,
            timeout=self.video_timeout,
        )

        video_id = body.get("id")
        if not video_id:
            raise AdPlatformRejected("Meta video upload response did not include a video id.", error_payload=body)

        logger.info("meta.video_uploaded", extra={"ad_account_id": ad_account_id, "video_id": video_id})
        return VideoUploadResult(video_id=str(video_id))
