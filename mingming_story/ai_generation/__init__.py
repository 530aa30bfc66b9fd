"""
AI image generation package for Mingming Story.
"""

from .prompting import (
    PIPELINE_STYLE_PLACEMENT,
    REGENERATION_STYLE_PLACEMENT,
    StylePlacement,
    apply_image_style,
)
from .replicate_service import (
    CHECK_IMAGE_SETTINGS,
    PANEL_IMAGE_SETTINGS,
    PLACEHOLDER_IMAGE_URL,
    ImageGenerationError,
    ImageResult,
    ImageSettings,
    ImageStatus,
    ReplicateImageGenerator,
    extract_image_url,
)

__all__ = [
    "apply_image_style",
    "CHECK_IMAGE_SETTINGS",
    "extract_image_url",
    "ImageGenerationError",
    "ImageResult",
    "ImageSettings",
    "ImageStatus",
    "PANEL_IMAGE_SETTINGS",
    "PIPELINE_STYLE_PLACEMENT",
    "PLACEHOLDER_IMAGE_URL",
    "REGENERATION_STYLE_PLACEMENT",
    "ReplicateImageGenerator",
    "StylePlacement",
]
