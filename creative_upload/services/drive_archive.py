from __future__ import annotations

import json
import logging
from typing import Any, Callable, Optional

from fastapi.concurrency import run_in_threadpool
from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaInMemoryUpload

from creative_upload.errors import ArchivalAuthError, ArchivalWriteError
from creative_upload.google_clients import GoogleAuthNotConfigured, get_drive_client, get_google_credentials
from creative_upload.types import ArchivalResult

logger = logging.getLogger(__name__)


def _http_error_payload(exc: HttpError) -> Any:
    content = exc.content
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    try:
        return json.loads(content)
    except (TypeError, ValueError):
        return {"text": content}


class DriveArchiver:
    """
    Stores one copy of each creative in a brand's Drive folder.

    Every call creates a new file; Drive allows duplicate names in a folder.
    """

    def __init__(
        self,
        *,
        credentials_provider: Callable[[], Any] = get_google_credentials,
        drive_factory: Callable[[Any], Any] = get_drive_client,
    ) -> None:
        self._credentials_provider = credentials_provider
        self._drive_factory = drive_factory

    async def store(
        self,
        *,
        content: bytes,
        media_type: str,
        file_name: str,
        folder_id: str,
    ) -> ArchivalResult:
        return await run_in_threadpool(
            self.store_sync,
            content=content,
            media_type=media_type,
            file_name=file_name,
            folder_id=folder_id,
        )

    def store_sync(
        self,
        *,
        content: bytes,
        media_type: str,
        file_name: str,
        folder_id: str,
    ) -> ArchivalResult:
        try:
            drive = self._drive_factory(self._credentials_provider())
        except (GoogleAuthNotConfigured, GoogleAuthError, ValueError, OSError) as exc:
            # Unparseable keys and unreadable key files surface as ValueError / OSError.
            raise ArchivalAuthError(f"Google Drive credentials are invalid or expired: {exc}") from exc

        media = MediaInMemoryUpload(content, mimetype=media_type, resumable=False)
        body = {"name": file_name, "parents": [folder_id]}
        try:
            file = (
                drive.files()
                .create(
                    body=body,
                    media_body=media,
                    fields="id,webViewLink",
                    supportsAllDrives=True,
                )
                .execute()
            )
        except HttpError as exc:
            status_code: Optional[int] = getattr(exc.resp, "status", None)
            payload = _http_error_payload(exc)
            if status_code == 401:
                raise ArchivalAuthError(
                    "Google Drive rejected the credentials (401).", error_payload=payload
                ) from exc
            raise ArchivalWriteError(
                f"Failed to upload file to Drive ({status_code}).", error_payload=payload
            ) from exc
        except GoogleAuthError as exc:
            raise ArchivalAuthError(f"Google Drive credentials are invalid or expired: {exc}") from exc
        except OSError as exc:
            raise ArchivalWriteError(f"Drive upload request failed: {exc}") from exc

        file_id = file.get("id") if isinstance(file, dict) else None
        if not file_id:
            raise ArchivalWriteError("Failed to upload file to Drive: missing file id", error_payload=file)

        logger.info(
            "drive_archive.stored",
            extra={"file_id": file_id, "folder_id": folder_id, "file_name": file_name, "size_bytes": len(content)},
        )
        return ArchivalResult(id=file_id, view_link=file.get("webViewLink"))
