from __future__ import annotations

from typing import Any, Optional


class MissingConfiguration(RuntimeError):
    pass


class CreativeUploadError(RuntimeError):
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        error_payload: Any = None,
    ) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        self.error_payload = error_payload


class ValidationError(CreativeUploadError):
    status_code = 400


class UnknownBrand(ValidationError):
    def __init__(self, brand: str) -> None:
        super().__init__(f"Unknown brand: {brand}")
        self.brand = brand


class MethodNotAllowed(CreativeUploadError):
    status_code = 405


class SourceUnavailable(CreativeUploadError):
    pass


class MalformedInlinePayload(CreativeUploadError):
    pass


class ArchivalAuthError(CreativeUploadError):
    pass


class ArchivalWriteError(CreativeUploadError):
    pass


class AdPlatformAuthError(CreativeUploadError):
    pass


class AdPlatformRejected(CreativeUploadError):
    pass


class NotAnImage(CreativeUploadError):
    pass
