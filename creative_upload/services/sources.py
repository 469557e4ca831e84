from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import Optional

import httpx

from creative_upload.config import settings
from creative_upload.errors import MalformedInlinePayload, SourceUnavailable
from creative_upload.types import DEFAULT_MEDIA_TYPE, ResolvedPayload, SourceKindEnum

logger = logging.getLogger(__name__)

_DATA_URL_RE = re.compile(r"^data:(?P<media_type>[^;,]*)(?P<params>(?:;[^,]*)?),(?P<data>.*)$", re.DOTALL)
_WHITESPACE_RE = re.compile(r"\s+")
_URLSAFE_TO_STANDARD = str.maketrans("-_", "+/")


def _clean_media_type(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    cleaned = value.split(";", 1)[0].strip().lower()
    return cleaned or None


def decode_inline_payload(payload: str, declared_media_type: Optional[str] = None) -> ResolvedPayload:
    """
    Decode a base64 upload, optionally wrapped in a data URL.

    A media type embedded in the data URL wins over the declared one.
    """
    media_type = _clean_media_type(declared_media_type)
    data = payload.strip()

    match = _DATA_URL_RE.match(data)
    if match:
        if "base64" not in match.group("params").lower().split(";"):
            raise MalformedInlinePayload("Inline payload data URL is not base64 encoded.")
        media_type = _clean_media_type(match.group("media_type")) or media_type
        data = match.group("data")

    # Accept URL-safe alphabet and missing padding, as browsers and Node emit both.
    data = _WHITESPACE_RE.sub("", data).translate(_URLSAFE_TO_STANDARD)
    data += "=" * (-len(data) % 4)
    try:
        content = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedInlinePayload(f"Inline payload is not valid base64: {exc}") from exc
    if not content:
        raise MalformedInlinePayload("Inline payload decoded to an empty file.")

    return ResolvedPayload(content=content, media_type=media_type or DEFAULT_MEDIA_TYPE)


class SourceResolver:
    def __init__(
        self,
        *,
        timeout_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = httpx.Timeout(timeout_seconds or settings.SOURCE_FETCH_TIMEOUT_SECONDS)
        self._transport = transport

    async def resolve(
        self,
        source_kind: SourceKindEnum,
        value: str,
        declared_media_type: Optional[str] = None,
    ) -> ResolvedPayload:
        if source_kind in (SourceKindEnum.url, SourceKindEnum.drive):
            return await self._fetch(value)
        if source_kind == SourceKindEnum.upload:
            return decode_inline_payload(value, declared_media_type)
        raise ValueError(f"Unsupported source kind: {source_kind}")

    async def _fetch(self, url: str) -> ResolvedPayload:
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
        except httpx.RequestError as exc:
            raise SourceUnavailable(f"Could not download source file: {exc}") from exc

        if not response.is_success:
            raise SourceUnavailable(
                f"Could not download source file ({response.status_code}).",
                error_payload={"url": url, "status": response.status_code},
            )
        if not response.content:
            raise SourceUnavailable("Source file is empty.", error_payload={"url": url})

        media_type = _clean_media_type(response.headers.get("content-type")) or DEFAULT_MEDIA_TYPE
        logger.info(
            "source.fetched",
            extra={"url": url, "media_type": media_type, "size_bytes": len(response.content)},
        )
        return ResolvedPayload(content=response.content, media_type=media_type)
