from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load env values for components that read os.environ directly (Google credentials, brand profiles).
_project_root = Path(__file__).resolve().parents[1]
load_dotenv(_project_root / ".env", override=False)


class Settings(BaseSettings):
    API_VERSION: str = "upload-creative-v1"
    LOG_LEVEL: str = "INFO"

    # Comma-separated brand ids; each one needs its own <BRAND>_* profile variables.
    BRANDS: str = "desa,mirav"

    META_GRAPH_API_VERSION: str = "v21.0"
    META_GRAPH_API_BASE_URL: str = "https://graph.facebook.com"
    # Video uploads go through the dedicated upload host.
    META_GRAPH_VIDEO_API_BASE_URL: str = "https://graph-video.facebook.com"
    META_REQUEST_TIMEOUT_SECONDS: float = 30.0

    SOURCE_FETCH_TIMEOUT_SECONDS: float = 30.0

    @property
    def brand_ids(self) -> list[str]:
        return [brand.strip().lower() for brand in self.BRANDS.split(",") if brand.strip()]

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
