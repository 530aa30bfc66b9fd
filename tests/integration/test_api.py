"""Integration tests for the FastAPI application.

The app is built through ``create_app`` with fake upstream providers and a
temporary story store, so no network access is needed.
"""

from __future__ import annotations

from fastapi.testclient import TestClient

from conftest import make_story
from mingming_story.ai_generation import PLACEHOLDER_IMAGE_URL, ReplicateImageGenerator
from mingming_story.api.main import create_app
from mingming_story.core.config import MingmingConfig
from mingming_story.pipeline import MingmingStoryOrchestrator
from mingming_story.story_generation import StoryTextGenerator

GENERATE_BODY = {
    "storySubject": "the moon",
    "storyType": "adventure",
    "imageStyle": "realistic",
}


class TestGenerateFullStory:
    """Test POST /generate-full-story."""

    def test_returns_five_panel_story(self, test_client, fake_replicate):
        response = test_client.post("/generate-full-story", json=GENERATE_BODY)

        assert response.status_code == 200
        data = response.json()
        assert data["title"] == "Mingming and the Moon"
        assert data["subject"] == "the moon"
        assert data["type"] == "adventure"
        assert data["style"] == "realistic"
        assert data["date"].endswith("Z")
        assert "id" not in data
        assert len(data["panels"]) == 5
        assert set(data["panels"][0]) == {"imagePrompt", "text", "imageUrl"}
        assert len(fake_replicate.calls) == 5

    def test_image_failure_uses_placeholder(self, test_client, fake_replicate):
        fake_replicate.outputs["scene 2"] = RuntimeError("nsfw filter")

        response = test_client.post("/generate-full-story", json=GENERATE_BODY)

        assert response.status_code == 200
        urls = [panel["imageUrl"] for panel in response.json()["panels"]]
        assert urls[1] == PLACEHOLDER_IMAGE_URL
        assert PLACEHOLDER_IMAGE_URL not in urls[:1] + urls[2:]

    def test_malformed_story_json(self, test_client, fake_completion, fake_replicate):
        fake_completion.text = "Once upon a time there was no JSON."

        response = test_client.post("/generate-full-story", json=GENERATE_BODY)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to generate story"}
        assert fake_replicate.calls == []

    def test_upstream_text_failure(self, test_client, fake_completion):
        fake_completion.error = RuntimeError("rate limited")

        response = test_client.post("/generate-full-story", json=GENERATE_BODY)

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to generate story"}

    def test_missing_field(self, test_client, fake_completion):
        response = test_client.post(
            "/generate-full-story", json={"storySubject": "the moon", "storyType": "adventure"}
        )

        assert response.status_code == 400
        assert "image_style" in response.json()["error"]
        assert fake_completion.calls == []

    def test_invalid_body(self, test_client):
        response = test_client.post(
            "/generate-full-story",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert "error" in response.json()


class TestRegenerateImage:
    """Test POST /regenerate-image."""

    def test_missing_prompt(self, test_client, fake_replicate):
        response = test_client.post("/regenerate-image", json={"imageStyle": "realistic"})

        assert response.status_code == 400
        assert response.json() == {"error": "Image prompt is required"}
        assert fake_replicate.calls == []

    def test_whitespace_prompt(self, test_client, fake_replicate):
        response = test_client.post("/regenerate-image", json={"imagePrompt": "   "})

        assert response.status_code == 400
        assert fake_replicate.calls == []

    def test_success(self, test_client, fake_replicate):
        fake_replicate.outputs["kite"] = ["https://img.example/kite.webp"]

        response = test_client.post(
            "/regenerate-image",
            json={"imagePrompt": "MINGK flies a kite", "imageStyle": "3d cartoon"},
        )

        assert response.status_code == 200
        assert response.json() == {"imageUrl": "https://img.example/kite.webp"}
        assert fake_replicate.calls[0][1]["prompt"] == "3d cartoon style MINGK flies a kite"

    def test_failure(self, test_client, fake_replicate):
        fake_replicate.outputs["kite"] = []

        response = test_client.post("/regenerate-image", json={"imagePrompt": "kite"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to regenerate image"}


class TestStoryEndpoints:
    """Test the story store endpoints."""

    def _save(self, test_client, title="Mingming and the Moon"):
        response = test_client.post("/stories", json=make_story(title=title).to_dict())
        assert response.status_code == 200
        return response.json()

    def test_save_and_list(self, test_client):
        saved = self._save(test_client)

        assert saved["id"]
        stories = test_client.get("/stories").json()["stories"]
        assert stories == [
            {
                "id": saved["id"],
                "title": "Mingming and the Moon",
                "imageUrl": "https://img.example/1.webp",
                "date": "2024-05-01T10:00:00.000Z",
                "favorite": False,
            }
        ]

    def test_save_invalid_story(self, test_client):
        response = test_client.post("/stories", json={"title": "no panels"})
        assert response.status_code == 400
        assert "panels" in response.json()["error"]

    def test_current_story(self, test_client):
        assert test_client.get("/stories/current").status_code == 404
        saved = self._save(test_client)
        assert test_client.get("/stories/current").json()["id"] == saved["id"]

    def test_get_story_resolution(self, test_client):
        first = self._save(test_client, title="One")
        second = self._save(test_client, title="Two")

        current = test_client.get(f"/stories/{second['id']}").json()
        assert len(current["panels"]) == 5

        summary = test_client.get(f"/stories/{first['id']}").json()
        assert summary["title"] == "One"
        assert "panels" not in summary

        fallback = test_client.get("/stories/unknown").json()
        assert fallback["id"] == second["id"]

    def test_get_story_empty_store(self, test_client):
        response = test_client.get("/stories/unknown")
        assert response.status_code == 404
        assert "error" in response.json()

    def test_pages(self, test_client):
        saved = self._save(test_client)

        cover = test_client.get(f"/stories/{saved['id']}/pages/0").json()
        assert cover["isCover"] is True
        assert cover["totalPages"] == 3

        spread = test_client.get(f"/stories/{saved['id']}/pages/2").json()
        assert [panel["text"] for panel in spread["panels"]] == ["Caption 4", "Caption 5"]

        assert test_client.get(f"/stories/{saved['id']}/pages/3").status_code == 404

    def test_favorite_and_filter(self, test_client):
        first = self._save(test_client, title="One")
        self._save(test_client, title="Two")

        response = test_client.post(f"/stories/{first['id']}/favorite")
        assert response.json() == {"id": first["id"], "favorite": True}

        favorites = test_client.get("/stories", params={"favorites_only": True}).json()["stories"]
        assert [story["title"] for story in favorites] == ["One"]

        assert test_client.post("/stories/missing/favorite").status_code == 404

    def test_delete(self, test_client):
        saved = self._save(test_client)

        response = test_client.delete(f"/stories/{saved['id']}")
        assert response.json() == {"id": saved["id"], "deleted": True}
        assert test_client.get("/stories").json()["stories"] == []
        # The current-story slot survives deletion from the catalog.
        assert test_client.get("/stories/current").json()["id"] == saved["id"]

        assert test_client.delete(f"/stories/{saved['id']}").status_code == 404


class TestRegeneratePanelImage:
    """Test POST /stories/{id}/panels/{index}/image."""

    def test_cover_regeneration_syncs_catalog(self, test_client, fake_replicate):
        saved = test_client.post("/stories", json=make_story().to_dict()).json()
        fake_replicate.outputs["scene 1"] = ["https://img.example/new-cover.webp"]

        response = test_client.post(f"/stories/{saved['id']}/panels/0/image")

        assert response.status_code == 200
        assert response.json()["panels"][0]["imageUrl"] == "https://img.example/new-cover.webp"
        stories = test_client.get("/stories").json()["stories"]
        assert stories[0]["imageUrl"] == "https://img.example/new-cover.webp"
        # The stored prompt already names the style, so it is sent unchanged.
        assert fake_replicate.calls[0][1]["prompt"] == "realistic style MINGK the dog in scene 1"

    def test_inner_panel_leaves_catalog(self, test_client, fake_replicate):
        saved = test_client.post("/stories", json=make_story().to_dict()).json()
        fake_replicate.outputs["scene 3"] = ["https://img.example/new-3.webp"]

        response = test_client.post(
            f"/stories/{saved['id']}/panels/2/image",
            json={"imagePrompt": "MINGK the dog in scene 3 at night"},
        )

        assert response.json()["panels"][2]["imageUrl"] == "https://img.example/new-3.webp"
        assert test_client.get("/stories").json()["stories"][0]["imageUrl"] == (
            "https://img.example/1.webp"
        )

    def test_without_current_story(self, test_client):
        assert test_client.post("/stories/x/panels/0/image").status_code == 404

    def test_invalid_index(self, test_client, fake_replicate):
        saved = test_client.post("/stories", json=make_story().to_dict()).json()
        response = test_client.post(f"/stories/{saved['id']}/panels/5/image")
        assert response.status_code == 400
        assert fake_replicate.calls == []

    def test_failure(self, test_client, fake_replicate):
        saved = test_client.post("/stories", json=make_story().to_dict()).json()
        fake_replicate.outputs["scene 4"] = RuntimeError("down")

        response = test_client.post(f"/stories/{saved['id']}/panels/3/image")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to regenerate image"}
        current = test_client.get("/stories/current").json()
        assert current["panels"][3]["imageUrl"] == "https://img.example/4.webp"


class TestMissingReplicateToken:
    """Requests made without REPLICATE_API_TOKEN keep the JSON error contract."""

    def test_generation_degrades_to_placeholders(self, monkeypatch, fake_completion, store_path):
        monkeypatch.delenv("REPLICATE_API_TOKEN", raising=False)
        orchestrator = MingmingStoryOrchestrator(
            text_generator=StoryTextGenerator(
                api_key="test-key", model="test-model", completion_fn=fake_completion
            ),
            image_generator=ReplicateImageGenerator(),
        )
        client = TestClient(
            create_app(
                settings=MingmingConfig(_env_file=None, store_path=store_path),
                orchestrator=orchestrator,
            )
        )

        response = client.post("/generate-full-story", json=GENERATE_BODY)

        assert response.status_code == 200
        urls = [panel["imageUrl"] for panel in response.json()["panels"]]
        assert urls == [PLACEHOLDER_IMAGE_URL] * 5

    def test_regeneration_returns_json_error(self, monkeypatch, store_path):
        monkeypatch.delenv("REPLICATE_API_TOKEN", raising=False)
        client = TestClient(
            create_app(settings=MingmingConfig(_env_file=None, store_path=store_path))
        )

        response = client.post("/regenerate-image", json={"imagePrompt": "kite"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to regenerate image"}
