"""Pydantic models describing catalog payloads and playback queue items."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal

from pydantic import (
    AliasChoices,
    AliasPath,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
)
from pydantic.alias_generators import to_pascal

# Catalog projections are read-only and arrive in the server's PascalCase.
CATALOG_MODEL_CONFIG = ConfigDict(
    alias_generator=to_pascal,
    populate_by_name=True,
    frozen=True,
    extra="ignore",
)


class MediaStreamType(str, Enum):
    VIDEO = "Video"
    AUDIO = "Audio"
    SUBTITLE = "Subtitle"
    EMBEDDED_IMAGE = "EmbeddedImage"
    DATA = "Data"


class MediaProtocol(str, Enum):
    """Transport used to reach a media source."""

    FILE = "File"
    HTTP = "Http"
    RTMP = "Rtmp"
    RTSP = "Rtsp"
    UDP = "Udp"
    RTP = "Rtp"
    FTP = "Ftp"


class LocationType(str, Enum):
    FILE_SYSTEM = "FileSystem"
    REMOTE = "Remote"
    VIRTUAL = "Virtual"
    OFFLINE = "Offline"


class SubtitleFormat(str, Enum):
    """MIME types understood by the playback engine for side-loaded subtitles."""

    SUBRIP = "application/x-subrip"
    WEBVTT = "text/vtt"
    SSA = "text/x-ssa"
    UNKNOWN = "text/x-unknown"


def _none_as_empty_list(value: object) -> object:
    return [] if value is None else value


class MediaStream(BaseModel):
    """A single track inside a media source."""

    model_config = CATALOG_MODEL_CONFIG

    type: str | None = None
    is_external: bool | None = None
    delivery_url: str | None = None
    codec: str | None = None
    language: str | None = None
    title: str | None = None
    index: int | None = None


class MediaSource(BaseModel):
    """One concrete playable rendition of a catalog entry."""

    model_config = CATALOG_MODEL_CONFIG

    id: str
    path: str | None = None
    # Kept as a plain string so unknown transports survive validation;
    # compare against ``MediaProtocol`` members.
    protocol: str | None = None
    name: str | None = None
    type: str | None = None
    media_streams: list[MediaStream] = Field(default_factory=list)

    @field_validator("media_streams", mode="before")
    @classmethod
    def _normalize_streams(cls, value: object) -> object:
        return _none_as_empty_list(value)


class _CatalogEntryBase(BaseModel):
    model_config = CATALOG_MODEL_CONFIG

    id: str
    name: str | None = None
    media_sources: list[MediaSource] = Field(default_factory=list)
    playback_position_ticks: int = Field(
        default=0,
        validation_alias=AliasChoices(
            "playback_position_ticks",
            "PlaybackPositionTicks",
            AliasPath("UserData", "PlaybackPositionTicks"),
        ),
    )

    @field_validator("media_sources", mode="before")
    @classmethod
    def _normalize_sources(cls, value: object) -> object:
        return _none_as_empty_list(value)

    @field_validator("playback_position_ticks", mode="before")
    @classmethod
    def _default_ticks(cls, value: object) -> object:
        return 0 if value is None else value

    def has_media_sources(self) -> bool:
        return bool(self.media_sources)


class Movie(_CatalogEntryBase):
    type: Literal["Movie"] = "Movie"


class Show(_CatalogEntryBase):
    type: Literal["Series"] = "Series"


class Season(_CatalogEntryBase):
    type: Literal["Season"] = "Season"
    series_id: str
    index_number: int | None = None


class Episode(_CatalogEntryBase):
    type: Literal["Episode"] = "Episode"
    series_id: str
    season_id: str | None = None
    parent_index_number: int | None = None
    index_number: int | None = None
    location_type: str | None = None

    @property
    def is_virtual(self) -> bool:
        """Return ``True`` for placeholder episodes that have not aired yet."""

        return self.location_type == LocationType.VIRTUAL


CatalogEntry = Annotated[
    Movie | Show | Season | Episode,
    Field(discriminator="type"),
]

catalog_entry_adapter: TypeAdapter[CatalogEntry] = TypeAdapter(CatalogEntry)


class RemoteItem(BaseModel):
    """Catalog item known only by id; media sources may need re-resolving."""

    model_config = CATALOG_MODEL_CONFIG

    id: str
    name: str | None = None
    type: str | None = None
    media_sources: list[MediaSource] | None = None
    parent_index_number: int | None = None
    index_number: int | None = None

    def has_media_sources(self) -> bool:
        return bool(self.media_sources)


class UserConfiguration(BaseModel):
    """Subset of the user's playback preferences consumed by the queue."""

    model_config = CATALOG_MODEL_CONFIG

    enable_next_episode_auto_play: bool = True


class TrickPlayManifest(BaseModel):
    """Scrubbing thumbnail manifest published by the trickplay plugin."""

    model_config = CATALOG_MODEL_CONFIG

    version: str
    width_resolutions: list[int] = Field(default_factory=list)


class ExternalSubtitle(BaseModel):
    """Side-loaded subtitle track handed to the playback engine."""

    model_config = ConfigDict(frozen=True)

    title: str
    language: str
    uri: str
    mime_type: SubtitleFormat


class PlayableItem(BaseModel):
    """Unit pushed into the playback queue."""

    model_config = ConfigDict(frozen=True)

    name: str
    item_id: str
    media_source_id: str
    media_source_uri: str | None = None
    playback_position: int = 0
    parent_index_number: int | None = None
    index_number: int | None = None
    external_subtitles: list[ExternalSubtitle] = Field(default_factory=list)
