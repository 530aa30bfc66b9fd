"""Application settings for the Mingming Story web service.

Values are read from environment variables with the ``MINGMING_`` prefix and
from a ``.env`` file in the working directory, falling back to the defaults
below.  Provider credentials (``OPENAI_API_KEY``, ``REPLICATE_API_TOKEN``) are
not part of these settings; the generator classes read them directly.

Example .env file:
    MINGMING_STORE_PATH=data/stories.json
    MINGMING_SERVER_PORT=8000
    MINGMING_LOG_LEVEL=DEBUG
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from mingming_story.ai_generation import PLACEHOLDER_IMAGE_URL


class MingmingConfig(BaseSettings):
    """Settings for the HTTP service and the story store.

    Attributes:
        store_path: JSON file holding the current story and the catalog.
        placeholder_image_url: Image path used when a panel render fails.
        story_model: Optional chat model override for story text.
        replicate_model: Optional Replicate ``owner/model:version`` override.
        server_host: Bind address for uvicorn.
        server_port: Port for uvicorn.
        log_level: Root log level applied by the server entry point.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MINGMING_",
        case_sensitive=False,
        extra="ignore",
    )

    store_path: Path = Field(
        default=Path("data") / "stories.json",
        description="JSON file backing the story store",
    )
    placeholder_image_url: str = Field(
        default=PLACEHOLDER_IMAGE_URL,
        description="Image path substituted for failed panel renders",
    )
    story_model: str | None = Field(
        default=None,
        description="Chat model used for story text (defaults to gpt-4o)",
    )
    replicate_model: str | None = Field(
        default=None,
        description="Replicate model identifier override",
    )
    server_host: str = Field(default="127.0.0.1", description="Server bind address")
    server_port: int = Field(default=8000, ge=1024, le=65535, description="Server port")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Root log level",
    )


# Global configuration instance, loaded once at import time.
config = MingmingConfig()
