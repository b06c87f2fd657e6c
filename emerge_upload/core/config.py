from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from emerge_upload.upload.coordinator import UPLOAD_ENDPOINT


class Settings(BaseSettings):
    """Upload settings loaded from environment variables.

    Every field can be set through an ``EMERGE_``-prefixed variable or a
    local ``.env`` file. Command-line options take precedence.

    Artifact lookup
    ───────────────
    • EMERGE_FILE_PATH           (explicit .app, .xcarchive or .zip)
    • EMERGE_DERIVED_DATA_PATH   (falls back to the simulator .app built there)
    """

    model_config = SettingsConfigDict(
        env_prefix="EMERGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Emerge API token, required for every upload.
    api_token: str = ""

    # Artifact to upload.
    file_path: Optional[str] = None
    derived_data_path: Optional[str] = None

    upload_endpoint: str = UPLOAD_ENDPOINT

    # Logging
    debug: bool = False

    @field_validator("file_path", "derived_data_path", mode="before")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if isinstance(v, str) and not v.strip():
            return None
        return v


def get_settings() -> Settings:
    return Settings()
