"""
Integration with Replicate for rendering Mingming story panels.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Any, Literal

import replicate

from .prompting import PIPELINE_STYLE_PLACEMENT, StylePlacement, apply_image_style

logger = logging.getLogger(__name__)

DEFAULT_MODEL_IDENTIFIER = (
    "the-wandering-poet/ming_ming:"
    "66c93dc59553eea5be184ff3ce5a4252035cca5ec7ac93eb8f7d1736a2da0f0f"
)

PLACEHOLDER_IMAGE_URL = "/images/placeholder.jpg"

ImageStatus = Literal["success", "degraded", "failed"]


class ImageGenerationError(RuntimeError):
    """Raised when Replicate fails or returns no usable image URL."""


@dataclass(frozen=True)
class ImageSettings:
    """Sampling parameters sent to the LoRA model with every prompt."""

    num_inference_steps: int = 4
    guidance_scale: float = 10
    aspect_ratio: str = "4:3"
    output_format: str = "webp"
    output_quality: int = 80
    lora_scale: float = 1
    extra_lora_scale: float = 1
    prompt_strength: float = 0.8
    megapixels: str = "1"
    base_model: str = "schnell"
    go_fast: bool = False

    def to_input(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.base_model,
            "prompt": prompt,
            "num_inference_steps": self.num_inference_steps,
            "guidance_scale": self.guidance_scale,
            "go_fast": self.go_fast,
            "lora_scale": self.lora_scale,
            "megapixels": self.megapixels,
            "num_outputs": 1,
            "aspect_ratio": self.aspect_ratio,
            "output_format": self.output_format,
            "output_quality": self.output_quality,
            "prompt_strength": self.prompt_strength,
            "extra_lora_scale": self.extra_lora_scale,
        }


# Story panels and single-image regeneration share one preset; the connectivity
# check renders a square image with a lower guidance scale.
PANEL_IMAGE_SETTINGS = ImageSettings()
CHECK_IMAGE_SETTINGS = replace(PANEL_IMAGE_SETTINGS, guidance_scale=3, aspect_ratio="1:1")


@dataclass(frozen=True)
class ImageResult:
    """
    Outcome of one render: a real image, a placeholder stand-in, or a hard failure.
    """

    status: ImageStatus
    url: str | None
    error: str | None = None

    @classmethod
    def success(cls, url: str) -> "ImageResult":
        return cls(status="success", url=url)

    @classmethod
    def degraded(cls, error: str, placeholder: str = PLACEHOLDER_IMAGE_URL) -> "ImageResult":
        return cls(status="degraded", url=placeholder, error=error)

    @classmethod
    def failure(cls, error: str) -> "ImageResult":
        return cls(status="failed", url=None, error=error)

    @property
    def ok(self) -> bool:
        return self.status == "success"


def extract_image_url(output: Any) -> str | None:
    """
    Return the first element of an array-shaped Replicate output as a string.
    """
    if isinstance(output, (list, tuple)) and output:
        first = output[0]
        if first is None:
            return None
        url = str(first).strip()
        return url or None
    return None


class ReplicateImageGenerator:
    """
    Convenience wrapper around the Replicate client for the Mingming LoRA model.

    Parameters
    ----------
    api_token:
        Replicate API token. Falls back to ``REPLICATE_API_TOKEN`` environment variable.
    model_identifier:
        Model string in the ``owner/model:version`` format. Falls back to
        ``REPLICATE_MODEL`` and then to the Mingming fine-tune.
    client:
        Optional pre-configured :class:`replicate.Client`. Mainly useful for testing.
    placeholder_url:
        Image path substituted when a panel render degrades.
    """

    def __init__(
        self,
        *,
        api_token: str | None = None,
        model_identifier: str | None = None,
        client: replicate.Client | None = None,
        placeholder_url: str = PLACEHOLDER_IMAGE_URL,
    ) -> None:
        self._api_token = api_token or os.getenv("REPLICATE_API_TOKEN")
        if not self._api_token and not client:
            logger.warning("REPLICATE_API_TOKEN is not set; image requests will fail.")

        self._model_identifier = (
            model_identifier or os.getenv("REPLICATE_MODEL") or DEFAULT_MODEL_IDENTIFIER
        )
        self._client = client
        if self._client is None and self._api_token:
            self._client = replicate.Client(api_token=self._api_token)
        self._placeholder_url = placeholder_url

    @property
    def model_identifier(self) -> str:
        """Return the model identifier currently used."""
        return self._model_identifier

    @property
    def placeholder_url(self) -> str:
        return self._placeholder_url

    def generate_image_url(
        self,
        prompt: str,
        *,
        settings: ImageSettings = PANEL_IMAGE_SETTINGS,
        **model_kwargs: Any,
    ) -> str:
        """
        Run the model for an already-styled prompt and return the image URL.

        Raises
        ------
        ImageGenerationError
            If no API token is configured, Replicate raises, or the output
            holds no URL.
        """
        replicate_input = settings.to_input(prompt)
        # Allow the caller to tweak model-specific knobs (e.g., seed).
        replicate_input.update(model_kwargs)

        if self._client is None:
            raise ImageGenerationError(
                "Replicate API token is required. Set REPLICATE_API_TOKEN or pass api_token."
            )

        try:
            output = self._client.run(self._model_identifier, input=replicate_input)
        except Exception as exc:
            raise ImageGenerationError(f"Replicate call failed: {exc}") from exc

        logger.debug("Replicate output for %r: %r", prompt, output)

        image_url = extract_image_url(output)
        if image_url is None:
            raise ImageGenerationError(f"No image URL found in Replicate output: {output!r}")
        return image_url

    def render_panel_image(
        self,
        image_prompt: str,
        image_style: str | None,
        *,
        placement: StylePlacement = PIPELINE_STYLE_PLACEMENT,
        settings: ImageSettings = PANEL_IMAGE_SETTINGS,
        label: str = "panel",
    ) -> ImageResult:
        """
        Render one panel, degrading to the placeholder image on any failure.

        Failures are logged and never raised, so a story is never lost because
        of a single panel.
        """
        try:
            final_prompt = apply_image_style(image_prompt, image_style, placement=placement)
            logger.info("Generating image for %s with prompt: %s", label, final_prompt)
            image_url = self.generate_image_url(final_prompt, settings=settings)
        except (ImageGenerationError, ValueError) as exc:
            logger.error("Image generation for %s degraded to placeholder: %s", label, exc)
            return ImageResult.degraded(str(exc), placeholder=self._placeholder_url)

        logger.info("Generated image for %s: %s", label, image_url)
        return ImageResult.success(image_url)

    def regenerate_image(
        self,
        image_prompt: str,
        image_style: str | None,
        *,
        placement: StylePlacement,
        settings: ImageSettings = PANEL_IMAGE_SETTINGS,
    ) -> ImageResult:
        """
        Render a single replacement image; failures are reported, not masked.
        """
        try:
            final_prompt = apply_image_style(image_prompt, image_style, placement=placement)
            logger.info("Regenerating image with prompt: %s", final_prompt)
            return ImageResult.success(self.generate_image_url(final_prompt, settings=settings))
        except (ImageGenerationError, ValueError) as exc:
            logger.error("Image regeneration failed: %s", exc)
            return ImageResult.failure(str(exc))
