"""
Prompt styling utilities for Mingming Story image generation.
"""

from __future__ import annotations

from typing import Literal

StylePlacement = Literal["suffix", "prefix"]

# Full-story generation appends the style; single-image regeneration prepends it.
PIPELINE_STYLE_PLACEMENT: StylePlacement = "suffix"
REGENERATION_STYLE_PLACEMENT: StylePlacement = "prefix"


def apply_image_style(
    image_prompt: str,
    image_style: str | None,
    *,
    placement: StylePlacement = PIPELINE_STYLE_PLACEMENT,
) -> str:
    """
    Make sure ``image_style`` is mentioned in the prompt sent to the image model.

    Prompts that already contain the style (case-insensitive) are returned
    unchanged, as are prompts with no style given.
    """
    if not image_prompt or not image_prompt.strip():
        raise ValueError("image_prompt must be a non-empty string.")

    prompt = image_prompt.strip()
    style = (image_style or "").strip()
    if not style or style.lower() in prompt.lower():
        return prompt

    if placement == "suffix":
        return f"{prompt}, {style} style"
    if placement == "prefix":
        return f"{style} style {prompt}"
    raise ValueError(f"Unknown style placement '{placement}'.")
