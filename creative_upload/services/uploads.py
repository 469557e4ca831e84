from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from creative_upload.brands import BrandProfile, BrandRegistry
from creative_upload.errors import CreativeUploadError, ValidationError
from creative_upload.schemas import UploadCreativeRequest
from creative_upload.services.drive_archive import DriveArchiver
from creative_upload.services.meta_ads import MetaAdsClient
from creative_upload.services.sources import SourceResolver
from creative_upload.types import (
    AdPlatformResult,
    AssetKindEnum,
    ResolvedPayload,
    SourceKindEnum,
    UploadOutcome,
    UploadRequest,
)

logger = logging.getLogger(__name__)

_DEFAULT_EXTENSIONS = {
    AssetKindEnum.image: "jpg",
    AssetKindEnum.video: "mp4",
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class CreativeUploadService:
    """
    Resolves a creative from its source, archives it to Drive, then uploads it to Meta.

    The two uploads run in order; a failure in either ends the request and nothing
    already stored is rolled back.
    """

    def __init__(
        self,
        *,
        registry: BrandRegistry,
        resolver: SourceResolver,
        archiver: DriveArchiver,
        meta_client: MetaAdsClient,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.registry = registry
        self.resolver = resolver
        self.archiver = archiver
        self.meta_client = meta_client
        self.clock = clock

    def validate(self, payload: UploadCreativeRequest) -> tuple[UploadRequest, BrandProfile]:
        brand = _clean(payload.brand)
        asset_type = _clean(payload.type)
        if not brand or not asset_type:
            raise ValidationError("brand and type are required.")
        if asset_type not in AssetKindEnum.__members__:
            raise ValidationError("type must be 'image' or 'video'.")
        asset_kind = AssetKindEnum(asset_type)

        profile = self.registry.lookup(brand)

        # Only an absent sourceType defaults to url; a blank one is rejected below.
        source_type = SourceKindEnum.url.value if payload.sourceType is None else payload.sourceType.strip()
        if source_type not in SourceKindEnum.__members__:
            raise ValidationError("sourceType must be 'url', 'drive' or 'upload'.")
        source_kind = SourceKindEnum(source_type)

        request = UploadRequest(
            brand=brand.lower(),
            asset_kind=asset_kind,
            source_kind=source_kind,
            file_name=_clean(payload.fileName),
        )
        if source_kind == SourceKindEnum.url:
            request.source_locator = _clean(payload.sourceUrl)
            if not request.source_locator:
                raise ValidationError("sourceUrl is required when sourceType is 'url'.")
        elif source_kind == SourceKindEnum.drive:
            request.source_locator = _clean(payload.driveUrl)
            if not request.source_locator:
                raise ValidationError("driveUrl is required when sourceType is 'drive'.")
        elif source_kind == SourceKindEnum.upload:
            request.inline_payload = _clean(payload.fileBase64)
            request.inline_media_type = _clean(payload.fileMimeType)
            if not request.inline_payload:
                raise ValidationError("fileBase64 is required when sourceType is 'upload'.")
        return request, profile

    def default_file_name(self, request: UploadRequest) -> str:
        timestamp = int(self.clock().timestamp() * 1000)
        if request.source_kind == SourceKindEnum.upload:
            return f"uploaded_{timestamp}"
        return f"{request.brand}_{timestamp}.{_DEFAULT_EXTENSIONS[request.asset_kind]}"

    async def _resolve(self, request: UploadRequest) -> ResolvedPayload:
        if request.source_kind == SourceKindEnum.upload:
            return await self.resolver.resolve(
                request.source_kind, request.inline_payload, request.inline_media_type
            )
        return await self.resolver.resolve(request.source_kind, request.source_locator)

    async def _upload_to_ad_platform(
        self,
        request: UploadRequest,
        profile: BrandProfile,
        resolved: ResolvedPayload,
        file_name: str,
    ) -> AdPlatformResult:
        if request.asset_kind == AssetKindEnum.image:
            return await self.meta_client.upload_image(
                content=resolved.content,
                media_type=resolved.media_type,
                file_name=file_name,
                ad_account_id=profile.ad_account_id,
                access_token=profile.ad_platform_token,
            )
        return await self.meta_client.upload_video(
            content=resolved.content,
            media_type=resolved.media_type,
            file_name=file_name,
            ad_account_id=profile.ad_account_id,
            access_token=profile.ad_platform_token,
        )

    async def handle(self, payload: UploadCreativeRequest) -> UploadOutcome:
        try:
            request, profile = self.validate(payload)
        except ValidationError as exc:
            logger.info(
                "creative_upload.rejected",
                extra={"brand": payload.brand, "asset_kind": payload.type, "reason": str(exc)},
            )
            raise

        log_context = {
            "brand": request.brand,
            "asset_kind": request.asset_kind.value,
            "source_kind": request.source_kind.value,
        }
        step = "resolve_source"
        try:
            resolved = await self._resolve(request)
            log_context.update(media_type=resolved.media_type, size_bytes=resolved.size_bytes)
            file_name = request.file_name or self.default_file_name(request)
            log_context["file_name"] = file_name

            step = "archive"
            archival = await self.archiver.store(
                content=resolved.content,
                media_type=resolved.media_type,
                file_name=file_name,
                folder_id=profile.archival_folder_id,
            )
            log_context["archival_id"] = archival.id

            step = "ad_platform"
            ad_result = await self._upload_to_ad_platform(request, profile, resolved, file_name)
        except CreativeUploadError as exc:
            logger.error(
                "creative_upload.failed",
                exc_info=exc,
                extra={**log_context, "step": step, "error_payload": exc.error_payload},
            )
            raise
        except Exception:
            logger.exception(
                "creative_upload.failed",
                extra={**log_context, "step": step, "error_payload": None},
            )
            raise

        logger.info("creative_upload.succeeded", extra=log_context)
        return UploadOutcome(
            brand=request.brand,
            asset_kind=request.asset_kind,
            source_kind=request.source_kind,
            source_url=request.source_locator,
            file_name=file_name,
            archival=archival,
            ad_platform=ad_result,
        )
