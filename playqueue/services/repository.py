"""Interface of the remote catalog consumed by the playback queue."""

from __future__ import annotations

from typing import Protocol, Sequence

from ..models import (
    CatalogEntry,
    Episode,
    MediaSource,
    RemoteItem,
    Season,
    TrickPlayManifest,
    UserConfiguration,
)

MEDIA_SOURCES_FIELD = "MediaSources"


class CatalogRepository(Protocol):
    """Async catalog operations; every call may raise ``ResolutionError``."""

    async def get_item(self, item_id: str) -> CatalogEntry: ...

    async def get_intros(self, item_id: str) -> list[RemoteItem]: ...

    async def get_next_up(self, series_id: str) -> list[Episode]: ...

    async def get_seasons(self, series_id: str) -> list[Season]: ...

    async def get_episodes(
        self,
        series_id: str,
        season_id: str | None,
        *,
        fields: Sequence[str] = (),
        start_item_id: str | None = None,
        limit: int | None = None,
    ) -> list[Episode]: ...

    async def get_media_sources(self, item_id: str) -> list[MediaSource]: ...

    async def get_user_configuration(self) -> UserConfiguration: ...

    async def get_base_url(self) -> str: ...

    async def get_trickplay_manifest(self, item_id: str) -> TrickPlayManifest: ...
