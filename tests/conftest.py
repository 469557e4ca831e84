import os
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT_DIR))

os.environ.setdefault("BRANDS", "desa,mirav")
os.environ.setdefault("DESA_META_AD_ACCOUNT_ID", "1111")
os.environ.setdefault("DESA_META_ACCESS_TOKEN", "desa_token")
os.environ.setdefault("DESA_DRIVE_FOLDER_ID", "desa_folder")
os.environ.setdefault("MIRAV_META_AD_ACCOUNT_ID", "act_2222")
os.environ.setdefault("MIRAV_META_ACCESS_TOKEN", "mirav_token")
os.environ.setdefault("MIRAV_DRIVE_FOLDER_ID", "mirav_folder")

from creative_upload.brands import BrandProfile, BrandRegistry
from creative_upload.services.uploads import CreativeUploadService
from creative_upload.types import ArchivalResult, ImageUploadResult, ResolvedPayload, VideoUploadResult


class FakeResolver:
    def __init__(self, calls: list, payload: ResolvedPayload | None = None, error: Exception | None = None):
        self.calls = calls
        self.payload = payload or ResolvedPayload(content=b"\xff" * 100, media_type="image/jpeg")
        self.error = error
        self.requests: list[tuple] = []

    async def resolve(self, source_kind, value, declared_media_type=None):
        self.calls.append("resolve")
        self.requests.append((source_kind, value, declared_media_type))
        if self.error:
            raise self.error
        return self.payload


class FakeArchiver:
    def __init__(self, calls: list, error: Exception | None = None):
        self.calls = calls
        self.error = error
        self.stored: list[dict] = []

    async def store(self, *, content, media_type, file_name, folder_id):
        self.calls.append("archive")
        if self.error:
            raise self.error
        self.stored.append(
            {"content": content, "media_type": media_type, "file_name": file_name, "folder_id": folder_id}
        )
        file_id = f"f{len(self.stored)}"
        return ArchivalResult(id=file_id, view_link=f"https://drive/{file_id}")


class FakeMetaClient:
    def __init__(self, calls: list, error: Exception | None = None):
        self.calls = calls
        self.error = error
        self.uploads: list[dict] = []

    async def upload_image(self, **kwargs):
        self.calls.append("upload_image")
        if self.error:
            raise self.error
        self.uploads.append(kwargs)
        return ImageUploadResult(image_hash="h1")

    async def upload_video(self, **kwargs):
        self.calls.append("upload_video")
        if self.error:
            raise self.error
        self.uploads.append(kwargs)
        return VideoUploadResult(video_id="v1")


@pytest.fixture()
def registry() -> BrandRegistry:
    return BrandRegistry(
        {
            "desa": BrandProfile(
                ad_account_id="1111",
                ad_platform_token="desa_token",
                archival_folder_id="desa_folder",
            ),
            "mirav": BrandProfile(
                ad_account_id="act_2222",
                ad_platform_token="mirav_token",
                archival_folder_id="mirav_folder",
            ),
        }
    )


@pytest.fixture()
def calls() -> list:
    return []


@pytest.fixture()
def fake_resolver(calls) -> FakeResolver:
    return FakeResolver(calls)


@pytest.fixture()
def fake_archiver(calls) -> FakeArchiver:
    return FakeArchiver(calls)


@pytest.fixture()
def fake_meta(calls) -> FakeMetaClient:
    return FakeMetaClient(calls)


@pytest.fixture()
def fixed_clock():
    return lambda: datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture()
def upload_service(registry, fake_resolver, fake_archiver, fake_meta, fixed_clock) -> CreativeUploadService:
    return CreativeUploadService(
        registry=registry,
        resolver=fake_resolver,
        archiver=fake_archiver,
        meta_client=fake_meta,
        clock=fixed_clock,
    )
