from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class AssetKindEnum(str, Enum):
    image = "image"
    video = "video"


class SourceKindEnum(str, Enum):
    url = "url"
    drive = "drive"
    upload = "upload"


DEFAULT_MEDIA_TYPE = "application/octet-stream"


@dataclass
class UploadRequest:
    brand: str
    asset_kind: AssetKindEnum
    source_kind: SourceKindEnum
    source_locator: Optional[str] = None
    file_name: Optional[str] = None
    inline_payload: Optional[str] = None
    inline_media_type: Optional[str] = None


@dataclass(frozen=True)
class ResolvedPayload:
    content: bytes
    media_type: str

    @property
    def size_bytes(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class ArchivalResult:
    id: str
    view_link: Optional[str]


@dataclass(frozen=True)
class ImageUploadResult:
    image_hash: str

    def as_response(self) -> dict[str, str]:
        return {"imageHash": self.image_hash}


@dataclass(frozen=True)
class VideoUploadResult:
    video_id: str

    def as_response(self) -> dict[str, str]:
        return {"videoId": self.video_id}


AdPlatformResult = Union[ImageUploadResult, VideoUploadResult]


@dataclass(frozen=True)
class UploadOutcome:
    brand: str
    asset_kind: AssetKindEnum
    source_kind: SourceKindEnum
    source_url: Optional[str]
    file_name: str
    archival: ArchivalResult
    ad_platform: AdPlatformResult
