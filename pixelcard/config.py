from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from a .env file if present (local dev only)
load_dotenv()


class Settings(BaseSettings):
    """Application configuration loaded from environment variables or .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # General
    project_id: Optional[str] = Field(default=None, description="GCP / Firebase project ID")
    log_level: str = Field("INFO")
    server_host: str = Field("0.0.0.0")
    server_port: int = Field(8000, ge=1, le=65535)

    # Image stylization provider selection
    image_provider: Literal["openai", "gemini"] = Field("openai")
    image_request_timeout: float = Field(120.0, gt=0, description="Seconds to wait for the AI service.")

    # OpenAI
    openai_api_key: Optional[str] = Field(default=None)
    openai_image_model: str = Field("gpt-image-1")
    openai_image_size: str = Field("1024x1024")

    # Gemini
    gemini_api_key: Optional[str] = Field(default=None)
    gemini_image_model: str = Field("gemini-2.5-flash-image")

    # Firebase
    firebase_credentials_json: Optional[str] = Field(
        default=None,
        validation_alias="GOOGLE_APPLICATION_CREDENTIALS",
        description="Path to service-account JSON file or JSON string itself.",
    )
    firebase_database_url: str = Field(..., description="Realtime Database URL, e.g. https://<project>.firebaseio.com")
    pixel_cards_path: str = Field("pixel_cards", description="Database node holding pixel card rows.")

    # Cloud Storage
    bucket_name: str = Field(..., description="Bucket receiving generated portraits.")
    public_images: bool = Field(True, description="If false, signed URLs are issued instead of public ones.")
    signed_url_expiry_days: int = Field(7, ge=1, le=7)
    image_cache_control: str = Field("public, max-age=3600")
    cleanup_orphaned_uploads: bool = Field(
        True,
        description="Delete the uploaded blob again when the metadata insert fails.",
    )

    @model_validator(mode="after")
    def _require_provider_key(self) -> "Settings":
        if self.image_provider == "openai" and not self.openai_api_key:
            raise ValueError("OPENAI_API_KEY is required when IMAGE_PROVIDER=openai")
        if self.image_provider == "gemini" and not self.gemini_api_key:
            raise ValueError("GEMINI_API_KEY is required when IMAGE_PROVIDER=gemini")
        return self


@lru_cache()
def get_settings() -> Settings:  # pragma: no cover
    """Return a cached Settings instance so it is only parsed once."""

    return Settings()
