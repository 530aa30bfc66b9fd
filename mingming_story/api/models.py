"""Pydantic request models for the Mingming Story API.

Field names follow the JSON the browser client sends (camelCase).  Required
text fields are declared optional so that the route handlers can answer a
missing value with ``400 {"error": ...}`` instead of a schema error.

Models
------
GenerateStoryRequest
    Payload for ``POST /generate-full-story``.
RegenerateImageRequest
    Payload for ``POST /regenerate-image``.
PanelImageRequest
    Optional payload for ``POST /stories/{id}/panels/{index}/image``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class GenerateStoryRequest(BaseModel):
    """Request body for ``POST /generate-full-story``."""

    model_config = ConfigDict(extra="ignore")

    storySubject: str | None = Field(default=None, description="What the story is about.")
    storyType: str | None = Field(
        default=None,
        description="Story type tag, e.g. 'adventure', 'family fun', 'educational'.",
    )
    imageStyle: str | None = Field(
        default=None,
        description="Image style tag, e.g. 'realistic', '3d cartoon', 'water color'.",
    )


class RegenerateImageRequest(BaseModel):
    """Request body for ``POST /regenerate-image``."""

    model_config = ConfigDict(extra="ignore")

    imagePrompt: str | None = Field(default=None, description="Panel image prompt to render.")
    imageStyle: str | None = Field(
        default=None,
        description="Style tag prepended to the prompt when it is not already mentioned.",
    )


class PanelImageRequest(BaseModel):
    """Optional overrides when regenerating a stored panel's image."""

    model_config = ConfigDict(extra="ignore")

    imagePrompt: str | None = Field(
        default=None,
        description="Replacement prompt; defaults to the panel's stored prompt.",
    )
    imageStyle: str | None = Field(
        default=None,
        description="Style tag; defaults to the story's style.",
    )
