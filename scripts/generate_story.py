"""
CLI to generate a Mingming story end-to-end and save it to the story store.

Usage:
    python scripts/generate_story.py \
        --subject "a rainy day at the library" \
        --story-type adventure \
        --image-style "water color" \
        --output story.yaml

Environment variables:
    OPENAI_API_KEY       - chat model credentials (or LITELLM_API_KEY)
    REPLICATE_API_TOKEN  - image model credentials
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict

from tqdm.auto import tqdm

# Ensure project root is on the Python path when running as a script.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from mingming_story import MingmingStoryOrchestrator, StoryRequest, StoryStore
from mingming_story.core.config import config
from mingming_story.storage import iter_pages
from mingming_story.story_generation import IMAGE_STYLES, STORY_TYPES


class ProgressTracker:
    """
    Provides command-line progress updates for the Mingming pipeline.
    """

    def __init__(self) -> None:
        self._panel_bar: tqdm | None = None

    def __call__(self, stage: str, payload: Dict[str, Any]) -> None:
        match stage:
            case "story:generating":
                self._write(f"[1/4] Writing a story about {payload.get('subject')}...")
            case "story:normalized":
                repairs = payload.get("repairs") or []
                note = f" (repaired: {'; '.join(repairs)})" if repairs else ""
                self._write(f"[2/4] Story ready: {payload.get('title')!r}{note}")
            case "images:rendering":
                total = payload.get("total_panels", 0)
                self._write("[3/4] Rendering panel artwork...")
                self._panel_bar = tqdm(total=total, desc="Panels", unit="panel")
            case "panel:done":
                if self._panel_bar is not None:
                    if payload.get("degraded"):
                        self._panel_bar.set_postfix_str(
                            f"panel {payload.get('panel_number')} used placeholder"
                        )
                    self._panel_bar.update(1)
            case "pipeline:complete":
                self.close()
                self._write("[4/4] Pipeline complete.")

    def close(self) -> None:
        if self._panel_bar is not None:
            self._panel_bar.close()
            self._panel_bar = None

    @staticmethod
    def _write(message: str) -> None:
        tqdm.write(message)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate a five-panel Mingming story.")
    parser.add_argument("--subject", required=True, help="What the story should be about.")
    parser.add_argument(
        "--story-type",
        default=STORY_TYPES[0],
        help=f"Story type tag (known: {', '.join(STORY_TYPES)}).",
    )
    parser.add_argument(
        "--image-style",
        default=IMAGE_STYLES[0],
        help=f"Image style tag (known: {', '.join(IMAGE_STYLES)}).",
    )
    parser.add_argument(
        "--store",
        default=str(config.store_path),
        help="Story store JSON file the result is saved to.",
    )
    parser.add_argument(
        "--output",
        default=None,
        help="Optional YAML file to export the generated story to.",
    )
    parser.add_argument("--model", default=None, help="Optional chat model override.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args()


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    request = StoryRequest(
        subject=args.subject,
        story_type=args.story_type,
        image_style=args.image_style,
    )
    orchestrator = MingmingStoryOrchestrator(story_model=args.model)
    tracker = ProgressTracker()

    try:
        story = orchestrator.generate_story(request, progress_callback=tracker)
    finally:
        tracker.close()

    store = StoryStore.from_path(args.store)
    story = store.save_story(story)
    print(f"Saved story {story.id} to {args.store}")

    if args.output:
        output_path = Path(args.output)
        output_path.write_text(story.to_yaml(), encoding="utf-8")
        print(f"Exported story to {output_path}")

    _print_flipbook(story)
    return 0


def _print_flipbook(story) -> None:
    for page in iter_pages(story):
        print(f"\n--- Page {page.index + 1} of {page.total_pages} ---")
        if page.is_cover:
            print(page.title)
        for panel in page.panels:
            if not page.is_cover:
                print(panel.text)
            print(f"  image: {panel.image_url}")


if __name__ == "__main__":
    raise SystemExit(main())
