"""
Story records produced by the pipeline and kept by the story store.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

import yaml

from mingming_story.ai_generation import PLACEHOLDER_IMAGE_URL, ImageStatus
from mingming_story.story_generation import PANEL_COUNT, PanelDraft


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. ``2024-05-01T10:00:00.000Z``."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class StoryRequest:
    """User input for one generation; never persisted."""

    subject: str
    story_type: str
    image_style: str

    def __post_init__(self) -> None:
        for name in ("subject", "story_type", "image_style"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{name} must be a non-empty string.")
            object.__setattr__(self, name, value.strip())


@dataclass(frozen=True)
class Panel:
    """A panel draft together with its rendered artwork."""

    image_prompt: str
    text: str
    image_url: str
    image_status: ImageStatus = "success"

    @classmethod
    def from_draft(
        cls, draft: PanelDraft, image_url: str, image_status: ImageStatus = "success"
    ) -> "Panel":
        return cls(
            image_prompt=draft.image_prompt,
            text=draft.text,
            image_url=image_url,
            image_status=image_status,
        )

    @property
    def degraded(self) -> bool:
        return self.image_status != "success"

    def to_dict(self) -> dict[str, Any]:
        return {"imagePrompt": self.image_prompt, "text": self.text, "imageUrl": self.image_url}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Panel":
        image_url = str(payload.get("imageUrl") or PLACEHOLDER_IMAGE_URL)
        return cls(
            image_prompt=str(payload.get("imagePrompt", "")),
            text=str(payload.get("text", "")),
            image_url=image_url,
            image_status="degraded" if image_url == PLACEHOLDER_IMAGE_URL else "success",
        )


@dataclass(frozen=True)
class Story:
    """
    A complete generated story. ``id`` stays ``None`` until the store assigns one.
    """

    title: str
    subject: str
    type: str
    style: str
    date: str
    panels: tuple[Panel, ...]
    id: str | None = None

    def __post_init__(self) -> None:
        if len(self.panels) != PANEL_COUNT:
            raise ValueError(f"A story needs exactly {PANEL_COUNT} panels, got {len(self.panels)}.")

    @property
    def cover_image_url(self) -> str:
        return self.panels[0].image_url or PLACEHOLDER_IMAGE_URL

    def with_id(self, story_id: str) -> "Story":
        return replace(self, id=story_id)

    def with_panel_image(self, panel_index: int, image_url: str) -> "Story":
        if not 0 <= panel_index < len(self.panels):
            raise IndexError(f"Panel index {panel_index} is out of range.")
        panels = list(self.panels)
        panels[panel_index] = replace(panels[panel_index], image_url=image_url, image_status="success")
        return replace(self, panels=tuple(panels))

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        if self.id is not None:
            payload["id"] = self.id
        payload.update(
            {
                "title": self.title,
                "subject": self.subject,
                "type": self.type,
                "style": self.style,
                "date": self.date,
                "panels": [panel.to_dict() for panel in self.panels],
            }
        )
        return payload

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=False, allow_unicode=True)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Story":
        panels_payload = payload.get("panels")
        if not isinstance(panels_payload, Sequence) or isinstance(panels_payload, (str, bytes)):
            raise ValueError("Story payload must include a 'panels' list.")
        try:
            panels = tuple(Panel.from_dict(entry) for entry in panels_payload)
        except AttributeError as exc:
            raise ValueError(f"Invalid panel entries: {panels_payload!r}") from exc

        story_id = payload.get("id")
        return cls(
            id=str(story_id) if story_id else None,
            title=str(payload.get("title", "")),
            subject=str(payload.get("subject", "")),
            type=str(payload.get("type", "")),
            style=str(payload.get("style", "")),
            date=str(payload.get("date") or utc_timestamp()),
            panels=panels,
        )


@dataclass
class StorySummary:
    """Catalog entry listed on the dashboard."""

    id: str
    title: str
    image_url: str
    date: str
    favorite: bool = field(default=False)

    @classmethod
    def from_story(cls, story: Story) -> "StorySummary":
        if story.id is None:
            raise ValueError("Only stories with an id can be summarised.")
        return cls(id=story.id, title=story.title, image_url=story.cover_image_url, date=story.date)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "imageUrl": self.image_url,
            "date": self.date,
            "favorite": self.favorite,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "StorySummary":
        try:
            story_id = str(payload["id"])
        except KeyError as exc:
            raise ValueError(f"Catalog entry without id: {payload!r}") from exc
        return cls(
            id=story_id,
            title=str(payload.get("title", "")),
            image_url=str(payload.get("imageUrl") or PLACEHOLDER_IMAGE_URL),
            date=str(payload.get("date", "")),
            favorite=bool(payload.get("favorite", False)),
        )
