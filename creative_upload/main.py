import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import ORJSONResponse

from creative_upload.brands import BrandRegistry
from creative_upload.config import settings
from creative_upload.errors import CreativeUploadError
from creative_upload.routers import creatives, diagnostics
from creative_upload.schemas import ErrorResponse
from creative_upload.services.drive_archive import DriveArchiver
from creative_upload.services.meta_ads import MetaAdsClient
from creative_upload.services.sources import SourceResolver
from creative_upload.services.uploads import CreativeUploadService

logger = logging.getLogger(__name__)


def build_upload_service(registry: Optional[BrandRegistry] = None) -> CreativeUploadService:
    return CreativeUploadService(
        registry=registry or BrandRegistry.from_environ(settings.brand_ids),
        resolver=SourceResolver(),
        archiver=DriveArchiver(),
        meta_client=MetaAdsClient(),
    )


def create_app(upload_service: Optional[CreativeUploadService] = None) -> FastAPI:
    for logger_name in ("creative_upload", "meta.ads"):
        logging.getLogger(logger_name).setLevel(settings.LOG_LEVEL.upper())

    app = FastAPI(
        title="Creative Upload API",
        default_response_class=ORJSONResponse,
    )
    # Brand profiles are read once here so a misconfigured deploy fails at startup.
    app.state.upload_service = upload_service or build_upload_service()

    @app.exception_handler(CreativeUploadError)
    async def creative_upload_error_handler(_request: Request, exc: CreativeUploadError) -> ORJSONResponse:
        body = ErrorResponse(error=str(exc), details=exc.error_payload)
        headers = {"Allow": "POST"} if exc.status_code == 405 else None
        return ORJSONResponse(
            status_code=exc.status_code,
            content=body.model_dump(exclude_none=True),
            headers=headers,
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(_request: Request, exc: Exception) -> ORJSONResponse:
        logger.exception("Unhandled server exception", exc_info=exc)
        return ORJSONResponse(status_code=500, content={"ok": False, "error": "Internal server error."})

    @app.get("/health")
    async def health() -> dict[str, object]:
        return {"ok": True, "version": settings.API_VERSION}

    app.include_router(creatives.router)
    app.include_router(diagnostics.router)

    return app


app = create_app()
