"""Discovery of side-loaded subtitle tracks on a media source."""

from __future__ import annotations

from ..models import (
    ExternalSubtitle,
    MediaSource,
    MediaStream,
    MediaStreamType,
    SubtitleFormat,
)
from ..utils import is_blank

DEFAULT_SUBTITLE_TITLE = "External"

_CODEC_FORMATS: dict[str, SubtitleFormat] = {
    "subrip": SubtitleFormat.SUBRIP,
    "webvtt": SubtitleFormat.WEBVTT,
    "ass": SubtitleFormat.SSA,
}


def subtitle_format(codec: str | None) -> SubtitleFormat:
    """Map a stream codec identifier to the subtitle MIME type."""

    if not codec:
        return SubtitleFormat.UNKNOWN
    return _CODEC_FORMATS.get(codec.strip().lower(), SubtitleFormat.UNKNOWN)


def is_external_subtitle(stream: MediaStream) -> bool:
    return (
        bool(stream.is_external)
        and stream.type == MediaStreamType.SUBTITLE
        and not is_blank(stream.delivery_url)
    )


def _delivery_path(stream: MediaStream) -> str:
    path = stream.delivery_url or ""
    # The server advertises webvtt streams but hands out the .srt route.
    if subtitle_format(stream.codec) is SubtitleFormat.WEBVTT:
        path = path.replace("Stream.srt", "Stream.vtt")
    return path


def extract_external_subtitles(
    media_source: MediaSource,
    base_url: str,
    *,
    fallback_title: str = DEFAULT_SUBTITLE_TITLE,
) -> list[ExternalSubtitle]:
    """Return the external subtitle tracks of ``media_source`` in stream order.

    ``base_url`` is prefixed verbatim to each stream's relative delivery URL.
    Missing titles and languages degrade to ``fallback_title`` and ``""``.
    """

    subtitles: list[ExternalSubtitle] = []
    for stream in media_source.media_streams:
        if not is_external_subtitle(stream):
            continue
        title = stream.title if not is_blank(stream.title) else fallback_title
        subtitles.append(
            ExternalSubtitle(
                title=title,
                language=stream.language or "",
                uri=f"{base_url}{_delivery_path(stream)}",
                mime_type=subtitle_format(stream.codec),
            )
        )
    return subtitles
