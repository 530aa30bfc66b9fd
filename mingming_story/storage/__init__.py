"""
Story persistence and flip-book reading for Mingming Story.
"""

from .flipbook import FlipbookPage, build_page, iter_pages, last_page_index
from .story_store import CATALOG_KEY, CURRENT_STORY_KEY, JsonKeyValueStore, StoryStore

__all__ = [
    "build_page",
    "CATALOG_KEY",
    "CURRENT_STORY_KEY",
    "FlipbookPage",
    "iter_pages",
    "JsonKeyValueStore",
    "last_page_index",
    "StoryStore",
]
