"""Shared pytest fixtures for Mingming Story tests.

Upstream providers are never contacted: the chat model is replaced by a
``completion_fn`` fake and Replicate by a fake client passed to
:class:`ReplicateImageGenerator`.
"""

from __future__ import annotations

import json
import threading
import time
from pathlib import Path
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from mingming_story.ai_generation import ReplicateImageGenerator
from mingming_story.api.main import create_app
from mingming_story.common import ChatResult
from mingming_story.core.config import MingmingConfig
from mingming_story.pipeline import MingmingStoryOrchestrator, Panel, Story
from mingming_story.storage import StoryStore
from mingming_story.story_generation import StoryTextGenerator


def make_story_json(panel_count: int = 5, *, title: str | None = "Mingming and the Moon") -> str:
    """Build a model response with ``panel_count`` panels."""
    payload: dict[str, Any] = {
        "panels": [
            {
                "imagePrompt": f"realistic style MINGK the dog in scene {number}",
                "text": f"Caption {number}",
            }
            for number in range(1, panel_count + 1)
        ]
    }
    if title is not None:
        payload["title"] = title
    return json.dumps(payload)


def make_story(story_id: str | None = None, *, title: str = "Mingming and the Moon") -> Story:
    """Build a five-panel story with distinct image URLs."""
    panels = tuple(
        Panel(
            image_prompt=f"realistic style MINGK the dog in scene {number}",
            text=f"Caption {number}",
            image_url=f"https://img.example/{number}.webp",
        )
        for number in range(1, 6)
    )
    return Story(
        id=story_id,
        title=title,
        subject="the moon",
        type="adventure",
        style="realistic",
        date="2024-05-01T10:00:00.000Z",
        panels=panels,
    )


class FakeCompletion:
    """Stand-in for ``call_chat_completion`` that records every call."""

    def __init__(self, text: str = "", error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def __call__(self, **kwargs: Any) -> ChatResult:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return ChatResult(text=self.text, raw={"choices": []})


class FakeReplicateClient:
    """Stand-in for ``replicate.Client``.

    ``outputs`` maps a substring of the prompt to the value ``run`` returns
    (or raises, when the value is an exception).  ``delays`` maps a substring
    to a sleep in seconds, used to force out-of-order completion.
    """

    def __init__(
        self,
        outputs: dict[str, Any] | None = None,
        delays: dict[str, float] | None = None,
        default: Callable[[str], Any] | None = None,
    ) -> None:
        self.outputs = outputs or {}
        self.delays = delays or {}
        self.default = default or (lambda prompt: [f"https://img.example/{abs(hash(prompt))}.webp"])
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.completion_order: list[str] = []
        self._lock = threading.Lock()

    def run(self, model: str, input: dict[str, Any]) -> Any:
        prompt = input["prompt"]
        with self._lock:
            self.calls.append((model, input))

        for marker, delay in self.delays.items():
            if marker in prompt:
                time.sleep(delay)

        with self._lock:
            self.completion_order.append(prompt)

        for marker, output in self.outputs.items():
            if marker in prompt:
                if isinstance(output, Exception):
                    raise output
                return output
        return self.default(prompt)


@pytest.fixture
def fake_completion() -> FakeCompletion:
    return FakeCompletion(text=make_story_json())


@pytest.fixture
def fake_replicate() -> FakeReplicateClient:
    return FakeReplicateClient()


@pytest.fixture
def image_generator(fake_replicate: FakeReplicateClient) -> ReplicateImageGenerator:
    return ReplicateImageGenerator(client=fake_replicate, model_identifier="owner/model:v1")


@pytest.fixture
def orchestrator(
    fake_completion: FakeCompletion, image_generator: ReplicateImageGenerator
) -> MingmingStoryOrchestrator:
    return MingmingStoryOrchestrator(
        text_generator=StoryTextGenerator(
            api_key="test-key", model="test-model", completion_fn=fake_completion
        ),
        image_generator=image_generator,
    )


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "stories.json"


@pytest.fixture
def story_store(store_path: Path) -> StoryStore:
    return StoryStore.from_path(store_path)


@pytest.fixture
def test_client(
    orchestrator: MingmingStoryOrchestrator, story_store: StoryStore, store_path: Path
) -> TestClient:
    """FastAPI TestClient wired to fake providers and a temporary store."""
    app = create_app(
        settings=MingmingConfig(store_path=store_path),
        orchestrator=orchestrator,
        store=story_store,
    )
    return TestClient(app)
