"""
Flip-book pagination: a cover page followed by spreads of two panels.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Sequence

from mingming_story.pipeline.models import Panel, Story


@dataclass(frozen=True)
class FlipbookPage:
    """One page of the viewer: the cover, or up to two story panels."""

    index: int
    total_pages: int
    is_cover: bool
    title: str | None
    panels: tuple[Panel, ...]

    @property
    def has_previous(self) -> bool:
        return self.index > 0

    @property
    def has_next(self) -> bool:
        return self.index < self.total_pages - 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "page": self.index,
            "totalPages": self.total_pages,
            "isCover": self.is_cover,
            "title": self.title,
            "panels": [panel.to_dict() for panel in self.panels],
            "hasPrevious": self.has_previous,
            "hasNext": self.has_next,
        }


def last_page_index(panels: Sequence[Panel]) -> int:
    if not panels:
        return 0
    return math.ceil((len(panels) - 1) / 2)


def build_page(story: Story, page: int) -> FlipbookPage:
    """Page 0 is the cover; page ``p`` shows panels ``2p-1`` and ``2p``."""
    if not 0 <= page <= last_page_index(story.panels):
        raise IndexError(f"Page {page} does not exist for story {story.id!r}.")

    total = last_page_index(story.panels) + 1
    if page == 0:
        return FlipbookPage(
            index=0,
            total_pages=total,
            is_cover=True,
            title=story.title,
            panels=(story.panels[0],),
        )

    return FlipbookPage(
        index=page,
        total_pages=total,
        is_cover=False,
        title=None,
        panels=tuple(story.panels[page * 2 - 1 : page * 2 + 1]),
    )


def iter_pages(story: Story) -> list[FlipbookPage]:
    return [build_page(story, page) for page in range(last_page_index(story.panels) + 1)]
