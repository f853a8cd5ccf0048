from functools import lru_cache
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from ``CVATMASKS_*`` environment variables.

    A local .env file is honoured for convenience. Command-line flags
    override these values for a single run.
    """

    log_level: Literal["debug", "info", "warning", "error", "critical"] = "info"
    log_format: Literal["json", "text"] = "json"

    max_workers: Optional[int] = Field(
        default=None,
        ge=1,
        description="Worker threads used to render images in parallel. None lets the executor decide.",
    )
    mask_extension: str = Field(
        default=".png",
        description="File extension (and therefore codec) of written masks.",
    )
    mask_mode: Literal["combined", "grouped"] = Field(
        default="combined",
        description="combined: one mask per image and label; grouped: one mask per group instance.",
    )

    model_config = SettingsConfigDict(
        env_prefix="CVATMASKS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("mask_extension")
    @classmethod
    def _extension_has_dot(cls, value: str) -> str:
        value = value.strip().lower()
        if not value.startswith(".") or len(value) < 2:
            raise ValueError("mask_extension must look like '.png'")
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Lazily load and cache settings to avoid re-parsing .env on each call."""
    load_dotenv(override=False)
    return Settings()
