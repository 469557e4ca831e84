from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Optional

from creative_upload.errors import MissingConfiguration, UnknownBrand

_PROFILE_FIELDS = {
    "ad_account_id": "META_AD_ACCOUNT_ID",
    "ad_platform_token": "META_ACCESS_TOKEN",
    "archival_folder_id": "DRIVE_FOLDER_ID",
}


@dataclass(frozen=True)
class BrandProfile:
    ad_account_id: str
    ad_platform_token: str
    archival_folder_id: str


def _normalize_brand_id(brand_id: str) -> str:
    return brand_id.strip().lower()


def profile_env_var(brand_id: str, suffix: str) -> str:
    return f"{_normalize_brand_id(brand_id).upper()}_{suffix}"


class BrandRegistry:
    """Read-only brand id -> destination profile map, built once at startup."""

    def __init__(self, profiles: Mapping[str, BrandProfile]) -> None:
        self._profiles = MappingProxyType(
            {_normalize_brand_id(brand_id): profile for brand_id, profile in profiles.items()}
        )

    @classmethod
    def from_environ(
        cls,
        brand_ids: Iterable[str],
        environ: Optional[Mapping[str, str]] = None,
    ) -> "BrandRegistry":
        env = os.environ if environ is None else environ
        profiles: dict[str, BrandProfile] = {}
        missing: list[str] = []
        for brand_id in brand_ids:
            values: dict[str, str] = {}
            for field_name, suffix in _PROFILE_FIELDS.items():
                var_name = profile_env_var(brand_id, suffix)
                value = (env.get(var_name) or "").strip()
                if not value:
                    missing.append(var_name)
                    continue
                values[field_name] = value
            if len(values) == len(_PROFILE_FIELDS):
                profiles[_normalize_brand_id(brand_id)] = BrandProfile(**values)

        if missing:
            raise MissingConfiguration(
                "Brand configuration is incomplete. Missing env vars: " + ", ".join(missing)
            )
        return cls(profiles)

    @property
    def brand_ids(self) -> list[str]:
        return sorted(self._profiles)

    def lookup(self, brand_id: str) -> BrandProfile:
        profile = self._profiles.get(_normalize_brand_id(brand_id))
        if profile is None:
            raise UnknownBrand(brand_id)
        return profile
