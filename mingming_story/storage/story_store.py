"""Story persistence for Mingming Story.

Stories are kept the way the browser client keeps them in local storage: a
single JSON file acting as a key-value store with two keys.

- ``currentStory``: the last generated (or last regenerated) full story
- ``mingmingStories``: the catalog of story summaries shown on the dashboard

The two keys are updated independently and without locking.  Favourite and
delete only touch the catalog; image regeneration always rewrites the current
story and only refreshes the catalog thumbnail for the cover of the story
currently being viewed.
"""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import Any

from mingming_story.pipeline.models import Story, StorySummary

logger = logging.getLogger(__name__)

CURRENT_STORY_KEY = "currentStory"
CATALOG_KEY = "mingmingStories"


class JsonKeyValueStore:
    """Tiny file-backed key-value store with local-storage semantics.

    Every read loads the whole file and every write rewrites it.  A missing,
    empty, or corrupt file reads as an empty store.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def get_item(self, key: str) -> Any | None:
        return self._load().get(key)

    def set_item(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError):
            logger.exception("Could not read story store at %s; treating it as empty.", self._path)
            return {}
        if not isinstance(data, dict):
            logger.error("Story store at %s is not a JSON object; treating it as empty.", self._path)
            return {}
        return data

    def _save(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2)


class StoryStore:
    """Current-story slot plus story catalog on top of a :class:`JsonKeyValueStore`."""

    def __init__(self, backend: JsonKeyValueStore) -> None:
        self._backend = backend

    @classmethod
    def from_path(cls, path: Path | str) -> "StoryStore":
        return cls(JsonKeyValueStore(path))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def current_story(self) -> Story | None:
        payload = self._backend.get_item(CURRENT_STORY_KEY)
        if not payload:
            return None
        try:
            return Story.from_dict(payload)
        except (ValueError, TypeError, AttributeError):
            logger.exception("Discarding unreadable current story.")
            return None

    def catalog(self) -> list[StorySummary]:
        summaries: list[StorySummary] = []
        for entry in self._raw_catalog():
            try:
                summaries.append(StorySummary.from_dict(entry))
            except (ValueError, TypeError, AttributeError):
                logger.warning("Skipping unreadable catalog entry: %r", entry)
        return summaries

    def resolve_story(self, story_id: str | None = None) -> Story | StorySummary | None:
        """Find the story a viewer should display.

        Lookup order: the current story when its id matches, then the catalog
        entry with that id (a summary only), then the current story regardless
        of id.  ``None`` means there is nothing to show.
        """
        current = self.current_story()
        if story_id:
            if current is not None and current.id == story_id:
                return current
            for summary in self.catalog():
                if summary.id == story_id:
                    return summary
        return current

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def save_story(self, story: Story) -> Story:
        """Store a freshly generated story as current and append it to the catalog."""
        if story.id is None:
            story = story.with_id(str(uuid.uuid4()))

        self._backend.set_item(CURRENT_STORY_KEY, story.to_dict())

        entries = self._raw_catalog()
        entries.append(StorySummary.from_story(story).to_dict())
        self._backend.set_item(CATALOG_KEY, entries)

        logger.info("Saved story %s (%r).", story.id, story.title)
        return story

    def toggle_favorite(self, story_id: str) -> bool | None:
        """Flip the favourite flag of a catalog entry; ``None`` if it is unknown."""
        entries = self._raw_catalog()
        new_value: bool | None = None
        for entry in entries:
            if isinstance(entry, dict) and entry.get("id") == story_id:
                new_value = not bool(entry.get("favorite", False))
                entry["favorite"] = new_value

        if new_value is not None:
            self._backend.set_item(CATALOG_KEY, entries)
        return new_value

    def delete_story(self, story_id: str) -> bool:
        """Remove a catalog entry.  The current-story slot is left untouched."""
        entries = self._raw_catalog()
        remaining = [
            entry for entry in entries if not (isinstance(entry, dict) and entry.get("id") == story_id)
        ]
        if len(remaining) == len(entries):
            return False
        self._backend.set_item(CATALOG_KEY, remaining)
        logger.info("Deleted story %s from the catalog.", story_id)
        return True

    def apply_regenerated_image(
        self, story_id: str | None, panel_index: int, image_url: str
    ) -> Story | None:
        """Record a regenerated panel image.

        The current story is always updated.  The catalog thumbnail follows
        only for the cover (index 0) and only when ``story_id`` is the current
        story's id.
        """
        current = self.current_story()
        if current is None:
            return None

        updated = current.with_panel_image(panel_index, image_url)
        self._backend.set_item(CURRENT_STORY_KEY, updated.to_dict())

        if panel_index == 0 and story_id is not None and current.id == story_id:
            entries = self._raw_catalog()
            for entry in entries:
                if isinstance(entry, dict) and entry.get("id") == story_id:
                    entry["imageUrl"] = image_url
            self._backend.set_item(CATALOG_KEY, entries)

        return updated

    def _raw_catalog(self) -> list[Any]:
        entries = self._backend.get_item(CATALOG_KEY)
        if not isinstance(entries, list):
            return []
        return entries
