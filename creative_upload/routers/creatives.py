from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError as PydanticValidationError

from creative_upload.errors import MethodNotAllowed, ValidationError
from creative_upload.schemas import UploadCreativeRequest, UploadCreativeResponse
from creative_upload.services.uploads import CreativeUploadService

router = APIRouter(prefix="/api", tags=["creatives"])


def get_upload_service(request: Request) -> CreativeUploadService:
    return request.app.state.upload_service


async def _parse_upload_request(request: Request) -> UploadCreativeRequest:
    try:
        body = await request.json()
    except ValueError as exc:
        raise ValidationError("Request body must be valid JSON.") from exc
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object.")
    try:
        return UploadCreativeRequest.model_validate(body)
    except PydanticValidationError as exc:
        fields = ", ".join(str(error["loc"][0]) for error in exc.errors() if error.get("loc"))
        raise ValidationError(f"Invalid request fields: {fields}") from exc


@router.post("/upload-creative", response_model=UploadCreativeResponse)
async def upload_creative(
    request: Request,
    service: CreativeUploadService = Depends(get_upload_service),
) -> UploadCreativeResponse:
    payload = await _parse_upload_request(request)
    outcome = await service.handle(payload)
    return UploadCreativeResponse(
        brand=outcome.brand,
        type=outcome.asset_kind.value,
        sourceType=outcome.source_kind.value,
        sourceUrl=outcome.source_url,
        fileName=outcome.file_name,
        archivalId=outcome.archival.id,
        archivalLink=outcome.archival.view_link,
        adPlatformResult=outcome.ad_platform.as_response(),
    )


@router.api_route(
    "/upload-creative",
    methods=["GET", "HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"],
    include_in_schema=False,
)
async def upload_creative_method_not_allowed() -> None:
    raise MethodNotAllowed("Method not allowed. Use POST.")
