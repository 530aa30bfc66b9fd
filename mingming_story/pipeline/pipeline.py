"""
Orchestrates the Mingming pipeline from story request to illustrated story.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Sequence

from mingming_story.ai_generation import (
    REGENERATION_STYLE_PLACEMENT,
    ImageGenerationError,
    ReplicateImageGenerator,
)
from mingming_story.common import CompletionCallable
from mingming_story.story_generation import (
    PanelDraft,
    StoryPrompt,
    StoryTextGenerator,
    build_story_prompt,
    decode_story,
)

from .models import Panel, Story, StoryRequest, utc_timestamp

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, dict[str, Any]], None]


def render_panels(
    drafts: Sequence[PanelDraft],
    image_style: str,
    image_generator: ReplicateImageGenerator,
    *,
    on_panel_done: Callable[[int, Panel], None] | None = None,
) -> list[Panel]:
    """
    Render every panel at once and return them in the order of ``drafts``.

    Each render degrades to the placeholder on its own, so one failed panel
    never affects the others.
    """
    if not drafts:
        return []

    def _render(index: int, draft: PanelDraft) -> Panel:
        result = image_generator.render_panel_image(
            draft.image_prompt,
            image_style,
            label=f"panel {index + 1}",
        )
        panel = Panel.from_draft(
            draft,
            image_url=result.url or image_generator.placeholder_url,
            image_status=result.status,
        )
        if on_panel_done is not None:
            try:
                on_panel_done(index, panel)
            except Exception:
                logger.exception("Progress callback failed for panel %d.", index + 1)
        return panel

    with ThreadPoolExecutor(max_workers=len(drafts), thread_name_prefix="panel-render") as pool:
        return list(pool.map(_render, range(len(drafts)), drafts))


class MingmingStoryOrchestrator:
    """
    High-level coordinator that chains together story text and image generation.
    """

    def __init__(
        self,
        *,
        text_generator: StoryTextGenerator | None = None,
        image_generator: ReplicateImageGenerator | None = None,
        story_model: str | None = None,
        story_api_key: str | None = None,
        completion_fn: CompletionCallable | None = None,
    ) -> None:
        self._text_generator = text_generator or StoryTextGenerator(
            api_key=story_api_key,
            model=story_model,
            completion_fn=completion_fn,
        )
        self._image_generator = image_generator or ReplicateImageGenerator()

    @property
    def image_generator(self) -> ReplicateImageGenerator:
        return self._image_generator

    def generate_story(
        self,
        request: StoryRequest,
        *,
        progress_callback: ProgressCallback | None = None,
    ) -> Story:
        """
        Complete pipeline from user input to a five-panel illustrated story.

        Raises ``StoryGenerationError`` or ``StoryParseError`` before any image
        is requested; image failures never raise.
        """
        prompt: StoryPrompt = build_story_prompt(
            request.subject, request.story_type, request.image_style
        )

        self._notify(progress_callback, "story:generating", subject=request.subject)
        raw_text = self._text_generator.generate_story_text(prompt)
        self._notify(progress_callback, "story:generated", characters=len(raw_text))

        draft = decode_story(raw_text, request.image_style)
        self._notify(
            progress_callback,
            "story:normalized",
            title=draft.title,
            total_panels=len(draft.panels),
            repairs=list(draft.repairs),
        )

        self._notify(progress_callback, "images:rendering", total_panels=len(draft.panels))
        panels = render_panels(
            draft.panels,
            request.image_style,
            self._image_generator,
            on_panel_done=lambda index, panel: self._notify(
                progress_callback,
                "panel:done",
                panel_number=index + 1,
                degraded=panel.degraded,
            ),
        )

        degraded = sum(1 for panel in panels if panel.degraded)
        if degraded:
            logger.warning(
                "%d of %d panels fell back to the placeholder image.", degraded, len(panels)
            )

        story = Story(
            title=draft.title,
            subject=request.subject,
            type=request.story_type,
            style=request.image_style,
            date=utc_timestamp(),
            panels=tuple(panels),
        )
        self._notify(
            progress_callback, "pipeline:complete", title=story.title, degraded_panels=degraded
        )
        return story

    def regenerate_image(self, image_prompt: str, image_style: str | None) -> str:
        """
        Render one replacement image, raising ``ImageGenerationError`` on failure.
        """
        result = self._image_generator.regenerate_image(
            image_prompt,
            image_style,
            placement=REGENERATION_STYLE_PLACEMENT,
        )
        if not result.ok or result.url is None:
            raise ImageGenerationError(result.error or "Image regeneration failed.")
        return result.url

    @staticmethod
    def _notify(
        callback: ProgressCallback | None,
        stage: str,
        **payload: Any,
    ) -> None:
        if callback is not None:
            callback(stage, payload)
