"""
Story generation utilities for crafting five-panel Mingming narratives.
"""

from .normalizer import (
    FALLBACK_TITLE,
    PanelDraft,
    StoryDraft,
    StoryParseError,
    decode_story,
    normalize_story,
    parse_story_json,
    strip_code_fences,
    synthetic_panel,
)
from .prompting import IMAGE_STYLES, PANEL_COUNT, STORY_TYPES, StoryPrompt, build_story_prompt
from .story_service import StoryGenerationError, StoryTextGenerator

__all__ = [
    "build_story_prompt",
    "decode_story",
    "FALLBACK_TITLE",
    "IMAGE_STYLES",
    "normalize_story",
    "PANEL_COUNT",
    "PanelDraft",
    "parse_story_json",
    "STORY_TYPES",
    "StoryDraft",
    "StoryGenerationError",
    "StoryParseError",
    "StoryPrompt",
    "StoryTextGenerator",
    "strip_code_fences",
    "synthetic_panel",
]
