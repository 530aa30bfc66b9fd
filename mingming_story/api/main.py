"""Mingming Story FastAPI application.

This module defines the application factory, all REST routes, and the
``main()`` CLI function that launches the uvicorn server.

Endpoints
---------
========  ======================================  ==================================
Method    Path                                    Purpose
========  ======================================  ==================================
POST      ``/generate-full-story``                Generate a five-panel story
POST      ``/regenerate-image``                   Render one replacement image
POST      ``/stories``                            Save a generated story
GET       ``/stories``                            Story catalog
GET       ``/stories/current``                    Last generated story
GET       ``/stories/{id}``                       Resolve a story for the viewer
GET       ``/stories/{id}/pages/{page}``          One flip-book page
POST      ``/stories/{id}/favorite``              Toggle favourite status
DELETE    ``/stories/{id}``                       Remove from the catalog
POST      ``/stories/{id}/panels/{index}/image``  Regenerate a stored panel image
========  ======================================  ==================================

Every error response has the shape ``{"error": "<message>"}``.

Usage
-----
CLI (installed entry point)::

    mingming-story

Direct invocation::

    python -m mingming_story.api.main
"""

from __future__ import annotations

import logging

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from mingming_story import __version__
from mingming_story.ai_generation import ImageGenerationError, ReplicateImageGenerator
from mingming_story.api.models import (
    GenerateStoryRequest,
    PanelImageRequest,
    RegenerateImageRequest,
)
from mingming_story.core.config import MingmingConfig, config
from mingming_story.pipeline import MingmingStoryOrchestrator, Story, StoryRequest
from mingming_story.storage import StoryStore, build_page

logger = logging.getLogger(__name__)


def create_app(
    *,
    settings: MingmingConfig | None = None,
    orchestrator: MingmingStoryOrchestrator | None = None,
    store: StoryStore | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    The orchestrator is created lazily on the first generation request, so
    the server starts without provider credentials.  Tests pass fakes here.

    Args:
        settings: Application settings; defaults to the global ``config``.
        orchestrator: Pre-built orchestrator (mainly for testing).
        store: Pre-built story store; defaults to ``settings.store_path``.

    Returns:
        The configured application.
    """
    settings = settings or config

    app = FastAPI(
        title="Mingming Story",
        description="Five-panel children's stories starring MINGK the dog.",
        version=__version__,
    )
    app.state.settings = settings
    app.state.orchestrator = orchestrator
    app.state.store = store or StoryStore.from_path(settings.store_path)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.warning("Rejected request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    _register_routes(app)
    return app


def _get_orchestrator(app: FastAPI) -> MingmingStoryOrchestrator:
    if app.state.orchestrator is None:
        settings: MingmingConfig = app.state.settings
        app.state.orchestrator = MingmingStoryOrchestrator(
            story_model=settings.story_model,
            image_generator=ReplicateImageGenerator(
                model_identifier=settings.replicate_model,
                placeholder_url=settings.placeholder_image_url,
            ),
        )
    return app.state.orchestrator


def _resolve_full_story(store: StoryStore, story_id: str) -> Story:
    resolved = store.resolve_story(story_id)
    if not isinstance(resolved, Story):
        raise HTTPException(status_code=404, detail=f"Story {story_id} not found")
    return resolved


def _register_routes(app: FastAPI) -> None:
    # Handlers are plain ``def`` so the blocking provider calls run in the
    # threadpool rather than on the event loop.

    @app.post("/generate-full-story")
    def generate_full_story(req: GenerateStoryRequest) -> dict:
        """Generate a titled, five-panel illustrated story.

        Returns:
            ``{title, subject, type, style, date, panels}``; panels whose
            artwork failed carry the placeholder image URL.

        Raises:
            HTTPException: 400 for missing fields, 500 when the story text
                cannot be generated or parsed.
        """
        try:
            story_request = StoryRequest(
                subject=req.storySubject or "",
                story_type=req.storyType or "",
                image_style=req.imageStyle or "",
            )
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        try:
            story = _get_orchestrator(app).generate_story(story_request)
        except Exception as exc:
            logger.exception("Error generating story")
            raise HTTPException(status_code=500, detail="Failed to generate story") from exc

        return story.to_dict()

    @app.post("/regenerate-image")
    def regenerate_image(req: RegenerateImageRequest) -> dict:
        """Render a single replacement image for a panel prompt.

        Raises:
            HTTPException: 400 when ``imagePrompt`` is missing, 500 when the
                image could not be generated.
        """
        if not req.imagePrompt or not req.imagePrompt.strip():
            raise HTTPException(status_code=400, detail="Image prompt is required")

        try:
            image_url = _get_orchestrator(app).regenerate_image(req.imagePrompt, req.imageStyle)
        except ImageGenerationError as exc:
            raise HTTPException(status_code=500, detail="Failed to regenerate image") from exc
        except Exception as exc:
            logger.exception("Error regenerating image")
            raise HTTPException(status_code=500, detail="Failed to regenerate image") from exc

        return {"imageUrl": image_url}

    @app.post("/stories")
    def save_story(payload: dict = Body(...)) -> dict:
        """Store a generated story as current and add it to the catalog."""
        try:
            story = Story.from_dict(payload)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        return app.state.store.save_story(story).to_dict()

    @app.get("/stories")
    def list_stories(favorites_only: bool = False) -> dict:
        summaries = app.state.store.catalog()
        if favorites_only:
            summaries = [summary for summary in summaries if summary.favorite]
        return {"stories": [summary.to_dict() for summary in summaries]}

    @app.get("/stories/current")
    def get_current_story() -> dict:
        story = app.state.store.current_story()
        if story is None:
            raise HTTPException(status_code=404, detail="No current story")
        return story.to_dict()

    @app.get("/stories/{story_id}")
    def get_story(story_id: str) -> dict:
        """Resolve a story the way the viewer does.

        The current story wins when its id matches, then the catalog entry,
        then the current story regardless of id.  404 tells the client to go
        back to the dashboard.
        """
        resolved = app.state.store.resolve_story(story_id)
        if resolved is None:
            raise HTTPException(status_code=404, detail=f"Story {story_id} not found")
        return resolved.to_dict()

    @app.get("/stories/{story_id}/pages/{page}")
    def get_story_page(story_id: str, page: int) -> dict:
        story = _resolve_full_story(app.state.store, story_id)
        try:
            return build_page(story, page).to_dict()
        except IndexError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc

    @app.post("/stories/{story_id}/favorite")
    def toggle_favorite(story_id: str) -> dict:
        favorite = app.state.store.toggle_favorite(story_id)
        if favorite is None:
            raise HTTPException(status_code=404, detail=f"Story {story_id} not found")
        return {"id": story_id, "favorite": favorite}

    @app.delete("/stories/{story_id}")
    def delete_story(story_id: str) -> dict:
        if not app.state.store.delete_story(story_id):
            raise HTTPException(status_code=404, detail=f"Story {story_id} not found")
        return {"id": story_id, "deleted": True}

    @app.post("/stories/{story_id}/panels/{panel_index}/image")
    def regenerate_panel_image(
        story_id: str,
        panel_index: int,
        req: PanelImageRequest | None = None,
    ) -> dict:
        """Regenerate one panel of the current story and sync the store.

        Returns:
            The updated current story.

        Raises:
            HTTPException: 404 without a current story, 400 for an invalid
                panel index, 500 when the image could not be generated.
        """
        store: StoryStore = app.state.store
        current = store.current_story()
        if current is None:
            raise HTTPException(status_code=404, detail="No current story")
        if not 0 <= panel_index < len(current.panels):
            raise HTTPException(status_code=400, detail=f"Invalid panel index {panel_index}")

        req = req or PanelImageRequest()
        panel = current.panels[panel_index]
        try:
            image_url = _get_orchestrator(app).regenerate_image(
                req.imagePrompt or panel.image_prompt,
                req.imageStyle or current.style,
            )
        except ImageGenerationError as exc:
            raise HTTPException(status_code=500, detail="Failed to regenerate image") from exc
        except Exception as exc:
            logger.exception("Error regenerating panel %d of story %s", panel_index, story_id)
            raise HTTPException(status_code=500, detail="Failed to regenerate image") from exc

        updated = store.apply_regenerated_image(story_id, panel_index, image_url)
        return updated.to_dict()


app = create_app()


def main() -> None:
    """Launch the uvicorn server with the configured host and port."""
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting Mingming Story on %s:%d", config.server_host, config.server_port)
    uvicorn.run(app, host=config.server_host, port=config.server_port)


if __name__ == "__main__":
    main()
