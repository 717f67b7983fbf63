"""Entry point for the FastAPI-powered playback queue service."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack, asynccontextmanager
from typing import Any

import httpx
from fastapi import FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .exceptions import ResolutionError
from .services.jellyfin import JellyfinClient
from .services.player_items import describe_media_sources
from .services.playback import PlaybackQueueService, create_playback_service
from .services.queue_builder import QueueFailed, QueueReady, QueueResult
from .services.repository import CatalogRepository

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app: FastAPI


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI):
    exit_stack = AsyncExitStack()
    jellyfin_http_client = await exit_stack.enter_async_context(
        httpx.AsyncClient(
            base_url=settings.jellyfin_base_url,
            timeout=httpx.Timeout(20.0, connect=10.0),
        )
    )
    repository = JellyfinClient(settings, jellyfin_http_client)
    playback_service = create_playback_service(settings, repository)

    fastapi_app.state.catalog_repository = repository
    fastapi_app.state.playback_service = playback_service
    fastapi_app.state.latest_queue_result = None

    def _remember_result(result: QueueResult) -> None:
        fastapi_app.state.latest_queue_result = result

    playback_service.on_queue_result(_remember_result)

    try:
        yield
    finally:  # pragma: no cover - teardown path exercised at runtime
        await playback_service.stop()
        await exit_stack.aclose()


def create_app() -> FastAPI:
    fastapi_app = FastAPI(
        title=settings.app_name,
        description="Playback queues for Jellyfin libraries",
        version="1.0.0",
        lifespan=lifespan,
    )

    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    register_routes(fastapi_app)
    return fastapi_app


def get_playback_service(app: FastAPI) -> PlaybackQueueService:
    service = getattr(app.state, "playback_service", None)
    if not isinstance(service, PlaybackQueueService):
        raise RuntimeError("Playback service not initialised")
    return service


def get_catalog_repository(app: FastAPI) -> CatalogRepository:
    repository = getattr(app.state, "catalog_repository", None)
    if repository is None:
        raise RuntimeError("Catalog repository not initialised")
    return repository


def queue_result_payload(result: QueueResult) -> dict[str, Any]:
    """Return the JSON body describing a published queue result."""

    if isinstance(result, QueueFailed):
        return {"status": "failed", "error": str(result.error)}
    return {
        "status": "ready",
        "items": [item.model_dump(mode="json") for item in result.items],
    }


def register_routes(fastapi_app: FastAPI) -> None:
    @fastapi_app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @fastapi_app.post("/items/{item_id}/queue", status_code=202)
    async def request_queue(
        item_id: str,
        media_source_index: int = Query(default=0, ge=0, alias="mediaSourceIndex"),
    ) -> JSONResponse:
        repository = get_catalog_repository(fastapi_app)
        service = get_playback_service(fastapi_app)
        try:
            entry = await repository.get_item(item_id)
        except ResolutionError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        service.request_queue_build(entry, media_source_index)
        return JSONResponse(
            status_code=202,
            content={"status": "accepted", "itemId": item_id},
        )

    @fastapi_app.get("/queue")
    async def latest_queue() -> Response:
        result = getattr(fastapi_app.state, "latest_queue_result", None)
        if not isinstance(result, (QueueReady, QueueFailed)):
            return Response(status_code=204)
        return JSONResponse(content=queue_result_payload(result))

    @fastapi_app.get("/items/{item_id}/versions")
    async def media_source_versions(item_id: str) -> dict[str, Any]:
        repository = get_catalog_repository(fastapi_app)
        try:
            entry = await repository.get_item(item_id)
        except ResolutionError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return {"itemId": item_id, "versions": describe_media_sources(entry)}

    @fastapi_app.get("/items/{item_id}/trickplay")
    async def trickplay_manifest(item_id: str) -> dict[str, Any]:
        repository = get_catalog_repository(fastapi_app)
        try:
            manifest = await repository.get_trickplay_manifest(item_id)
        except ResolutionError as exc:
            raise HTTPException(status_code=502, detail=str(exc)) from exc
        return manifest.model_dump(by_alias=True)


app = create_app()
