from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class UploadCreativeRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    brand: Optional[str] = None
    type: Optional[str] = None
    sourceType: Optional[str] = None
    sourceUrl: Optional[str] = None
    driveUrl: Optional[str] = None
    fileBase64: Optional[str] = None
    fileName: Optional[str] = None
    fileMimeType: Optional[str] = None


class UploadCreativeResponse(BaseModel):
    ok: bool = True
    brand: str
    type: str
    sourceType: str
    sourceUrl: Optional[str] = None
    fileName: str
    archivalId: str
    archivalLink: Optional[str] = None
    adPlatformResult: dict[str, str]


class ErrorResponse(BaseModel):
    ok: bool = False
    error: str
    details: Optional[Any] = None
