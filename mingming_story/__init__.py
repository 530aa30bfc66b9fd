"""
Mingming Story package exposing story generation, the pipeline, and story storage.
"""

__version__ = "0.1.0"

from .pipeline import (  # noqa: E402
    MingmingStoryOrchestrator,
    Panel,
    Story,
    StoryRequest,
    StorySummary,
)
from .storage import StoryStore  # noqa: E402

__all__ = [
    "__version__",
    "MingmingStoryOrchestrator",
    "Panel",
    "Story",
    "StoryRequest",
    "StoryStore",
    "StorySummary",
]
