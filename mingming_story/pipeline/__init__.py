"""
End-to-end orchestration for Mingming story and image generation.
"""

from .models import Panel, Story, StoryRequest, StorySummary, utc_timestamp
from .pipeline import MingmingStoryOrchestrator, ProgressCallback, render_panels

__all__ = [
    "MingmingStoryOrchestrator",
    "Panel",
    "ProgressCallback",
    "render_panels",
    "Story",
    "StoryRequest",
    "StorySummary",
    "utc_timestamp",
]
