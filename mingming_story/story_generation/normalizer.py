"""
Decode and repair the chat model's story JSON into a fixed five-panel draft.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Mapping

from .prompting import CHARACTER_PROMPT_NAME, PANEL_COUNT

logger = logging.getLogger(__name__)

FALLBACK_TITLE = "Mingming's Adventure"

_CODE_FENCE_PATTERN = re.compile(r"```json\s*|\s*```")


class StoryParseError(ValueError):
    """Raised when the model output cannot be decoded as a story object."""


@dataclass(frozen=True)
class PanelDraft:
    """
    A single panel as written by the chat model, before any artwork exists.
    """

    image_prompt: str
    text: str

    def as_dict(self) -> dict[str, Any]:
        return {"imagePrompt": self.image_prompt, "text": self.text}


@dataclass(frozen=True)
class StoryDraft:
    """
    Story text with exactly ``PANEL_COUNT`` panels and a non-empty title.

    ``repairs`` lists every change the normalizer had to make.
    """

    title: str
    panels: tuple[PanelDraft, ...]
    repairs: tuple[str, ...] = field(default=())

    @property
    def was_repaired(self) -> bool:
        return bool(self.repairs)


def strip_code_fences(raw_text: str) -> str:
    """Remove Markdown code-fence markers wrapped around a JSON payload."""
    if "```" not in raw_text:
        return raw_text
    return _CODE_FENCE_PATTERN.sub("", raw_text)


def parse_story_json(raw_text: str) -> dict[str, Any]:
    cleaned = strip_code_fences(raw_text or "")
    try:
        parsed = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.error("Unparsable story content: %r", raw_text)
        raise StoryParseError("Failed to parse story content from model response.") from exc

    if not isinstance(parsed, dict):
        raise StoryParseError(
            f"Story content must be a JSON object, received {type(parsed).__name__}."
        )
    return parsed


def synthetic_panel(panel_number: int, image_style: str, title: str) -> PanelDraft:
    """Filler panel used when the model produced too few usable panels."""
    image_prompt = (
        f"{image_style} style {CHARACTER_PROMPT_NAME} as the main subject "
        f"in a scene for panel {panel_number}."
    )
    text = title if panel_number == 1 else f"Panel {panel_number}"
    return PanelDraft(image_prompt=image_prompt, text=text)


def normalize_story(parsed: Mapping[str, Any], image_style: str) -> StoryDraft:
    """
    Repair a decoded story object so it always has five panels and a title.

    Padding and truncation never fail; the repairs are recorded on the draft.
    """
    repairs: list[str] = []

    raw_title = parsed.get("title")
    title = str(raw_title).strip() if isinstance(raw_title, str) else ""
    # Panel 1 filler uses the model title when present, the fallback otherwise.
    cover_caption = title or FALLBACK_TITLE

    raw_panels = parsed.get("panels")
    if not isinstance(raw_panels, list):
        repairs.append("missing panels list")
        raw_panels = []

    panels: list[PanelDraft] = []
    for number, item in enumerate(raw_panels[:PANEL_COUNT], start=1):
        draft = _coerce_panel(item)
        if draft is None:
            repairs.append(f"replaced unusable panel {number}")
            draft = synthetic_panel(number, image_style, cover_caption)
        elif not draft.image_prompt:
            # Keep the caption the model wrote; only the image prompt is filled in.
            repairs.append(f"filled image prompt of panel {number}")
            filler = synthetic_panel(number, image_style, cover_caption)
            draft = PanelDraft(image_prompt=filler.image_prompt, text=draft.text)
        panels.append(draft)

    while len(panels) < PANEL_COUNT:
        number = len(panels) + 1
        repairs.append(f"padded panel {number}")
        panels.append(synthetic_panel(number, image_style, cover_caption))

    if len(raw_panels) > PANEL_COUNT:
        repairs.append(f"truncated {len(raw_panels) - PANEL_COUNT} extra panels")

    if not title:
        repairs.append("missing title")
        title = FALLBACK_TITLE

    if repairs:
        logger.info("Story repaired: %s", "; ".join(repairs))

    return StoryDraft(title=title, panels=tuple(panels), repairs=tuple(repairs))


def decode_story(raw_text: str, image_style: str) -> StoryDraft:
    """Strict decode followed by the padding/truncation repair stage."""
    return normalize_story(parse_story_json(raw_text), image_style)


def _coerce_panel(item: Any) -> PanelDraft | None:
    if not isinstance(item, Mapping):
        return None

    image_prompt = item.get("imagePrompt")
    text = item.get("text")
    return PanelDraft(
        image_prompt=image_prompt.strip() if isinstance(image_prompt, str) else "",
        text=str(text).strip() if text is not None else "",
    )

