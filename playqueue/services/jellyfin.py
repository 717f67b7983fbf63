"""Utilities for communicating with a Jellyfin-compatible catalog server."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from ..config import Settings
from ..exceptions import ResolutionError
from ..models import (
    CatalogEntry,
    Episode,
    MediaSource,
    RemoteItem,
    Season,
    TrickPlayManifest,
    UserConfiguration,
    catalog_entry_adapter,
)
from ..utils import normalize_base_url

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class JellyfinClient:
    """Thin wrapper around the Jellyfin HTTP API implementing ``CatalogRepository``."""

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        *,
        backoff_factor: float = 0.5,
    ) -> None:
        self._settings = settings
        self._client = http_client
        self._max_retries = settings.jellyfin_retry_limit
        self._backoff_factor = backoff_factor

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "User-Agent": f"{self._settings.app_name} (playqueue)",
        }
        if self._settings.jellyfin_api_key:
            headers["X-Emby-Token"] = self._settings.jellyfin_api_key
        return headers

    @property
    def user_id(self) -> str:
        user_id = self._settings.jellyfin_user_id
        if not user_id:
            raise ResolutionError("JELLYFIN_USER_ID is not configured")
        return user_id

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Send a request, retrying transient failures, and decode the JSON body."""

        attempt = 0
        while True:
            try:
                response = await self._client.request(
                    method,
                    url,
                    headers=self._headers(),
                    params=params,
                    json=json,
                )
            except httpx.HTTPError as exc:
                attempt += 1
                if attempt <= self._max_retries:
                    backoff = self._backoff(attempt)
                    logger.info(
                        "Transient error talking to Jellyfin (%s). Retrying %s in %.1fs",
                        exc.__class__.__name__,
                        url,
                        backoff,
                    )
                    await asyncio.sleep(backoff)
                    continue
                logger.warning("Jellyfin request %s %s failed: %s", method, url, exc)
                raise ResolutionError(f"Request to {url} failed: {exc}") from exc

            if 500 <= response.status_code < 600:
                attempt += 1
                if attempt <= self._max_retries:
                    backoff = self._backoff(attempt)
                    logger.info(
                        "Jellyfin %s for %s. Retrying in %.1fs",
                        response.status_code,
                        url,
                        backoff,
                    )
                    await asyncio.sleep(backoff)
                    continue
            break

        if response.status_code >= 400:
            logger.warning(
                "Jellyfin request %s %s failed with %s: %s",
                method,
                url,
                response.status_code,
                response.text,
            )
            raise ResolutionError(
                f"Request to {url} failed with status {response.status_code}"
            )

        try:
            return response.json()
        except ValueError as exc:
            raise ResolutionError(f"Unexpected non-JSON response from {url}") from exc

    def _backoff(self, attempt: int) -> float:
        return min(2 ** (attempt - 1), 5) * self._backoff_factor

    async def _get_items(
        self, url: str, model: type[ModelT], params: dict[str, Any] | None = None
    ) -> list[ModelT]:
        payload = await self._request("GET", url, params=params)
        raw_items = payload.get("Items") if isinstance(payload, dict) else None
        if not isinstance(raw_items, list):
            raise ResolutionError(f"Unexpected item list structure from {url}")
        return _validate(TypeAdapter(list[model]), raw_items, url)

    async def get_item(self, item_id: str) -> CatalogEntry:
        url = f"/Users/{self.user_id}/Items/{item_id}"
        payload = await self._request("GET", url)
        return _validate(catalog_entry_adapter, payload, url)

    async def get_intros(self, item_id: str) -> list[RemoteItem]:
        return await self._get_items(
            f"/Users/{self.user_id}/Items/{item_id}/Intros", RemoteItem
        )

    async def get_next_up(self, series_id: str) -> list[Episode]:
        return await self._get_items(
            "/Shows/NextUp",
            Episode,
            params={"UserId": self.user_id, "SeriesId": series_id},
        )

    async def get_seasons(self, series_id: str) -> list[Season]:
        return await self._get_items(
            f"/Shows/{series_id}/Seasons",
            Season,
            params={"UserId": self.user_id},
        )

    async def get_episodes(
        self,
        series_id: str,
        season_id: str | None,
        *,
        fields: Sequence[str] = (),
        start_item_id: str | None = None,
        limit: int | None = None,
    ) -> list[Episode]:
        params: dict[str, Any] = {"UserId": self.user_id}
        if season_id:
            params["SeasonId"] = season_id
        if fields:
            params["Fields"] = ",".join(fields)
        if start_item_id:
            params["StartItemId"] = start_item_id
        if limit is not None:
            params["Limit"] = limit
        return await self._get_items(
            f"/Shows/{series_id}/Episodes", Episode, params=params
        )

    async def get_media_sources(self, item_id: str) -> list[MediaSource]:
        url = f"/Items/{item_id}/PlaybackInfo"
        payload = await self._request(
            "POST",
            url,
            params={"UserId": self.user_id},
            json={"UserId": self.user_id},
        )
        raw_sources = payload.get("MediaSources") if isinstance(payload, dict) else None
        if raw_sources is None:
            return []
        return _validate(TypeAdapter(list[MediaSource]), raw_sources, url)

    async def get_user_configuration(self) -> UserConfiguration:
        url = f"/Users/{self.user_id}"
        payload = await self._request("GET", url)
        configuration = payload.get("Configuration") if isinstance(payload, dict) else None
        return _validate(
            TypeAdapter(UserConfiguration), configuration or {}, url
        )

    async def get_base_url(self) -> str:
        base_url = normalize_base_url(str(self._client.base_url))
        return base_url or self._settings.jellyfin_base_url

    async def get_trickplay_manifest(self, item_id: str) -> TrickPlayManifest:
        url = f"/Trickplay/{item_id}/GetManifest"
        payload = await self._request("GET", url)
        return _validate(TypeAdapter(TrickPlayManifest), payload, url)


def _validate(adapter: TypeAdapter[Any], payload: Any, url: str) -> Any:
    try:
        return adapter.validate_python(payload)
    except ValidationError as exc:
        raise ResolutionError(f"Invalid payload from {url}: {exc}") from exc
