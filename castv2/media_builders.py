"""Builders that assemble MediaData payloads for the default media receiver."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Iterable

from castv2.media_types import (
    GenericMediaMetadata,
    MediaData,
    PhotoTrackMediaMetadata,
    StreamType,
)

_SCHEME = re.compile(r"[A-Za-z][A-Za-z0-9+.\-]*:")


def _is_request_uri(text: str) -> bool:
    """Return True if ``text`` is an absolute URI or an absolute path."""
    if not text or any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in text):
        return False
    if text == "*" or text.startswith("/"):
        return True
    return _SCHEME.match(text) is not None


def convert_date_to_iso8601(date: datetime | None) -> str | None:
    """Format ``date`` as an RFC 3339 UTC timestamp; naive dates count as UTC."""
    if date is None:
        return None
    if date.tzinfo is None:
        date = date.replace(tzinfo=timezone.utc)
    return date.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class StandardMediaDataBuilder:
    """Collects the fields shared by every kind of media item."""

    def __init__(
        self,
        content_id: str = "",
        content_type: str = "",
        stream_type: StreamType | str = "",
    ) -> None:
        self._content_id = ""
        self._content_type = ""
        self._stream_type = ""
        self._duration: float | None = None
        self._custom_data: dict[str, Any] | None = None
        self.set_content_id(content_id)
        self.set_content_type(content_type)
        self.set_stream_type(stream_type)

    def set_content_id(self, content_id: str) -> None:
        """Set the identifier of the content, usually its URL."""
        self._content_id = str(content_id)

    def set_content_type(self, content_type: str) -> None:
        """Set the MIME type of the content."""
        self._content_type = str(content_type)

    def set_stream_type(self, stream_type: StreamType | str) -> None:
        """Set the stream type; values other than NONE, BUFFERED or LIVE are ignored."""
        try:
            self._stream_type = StreamType(stream_type).value
        except ValueError:
            pass

    def set_duration(self, duration: float | None) -> None:
        """Set the duration of the content in seconds."""
        self._duration = duration

    def set_custom_data(self, custom_data: dict[str, Any] | None) -> None:
        """Set application-specific data sent along with the media."""
        self._custom_data = custom_data

    def _metadata(self) -> dict[str, Any] | None:
        return None

    def build(self) -> MediaData:
        """Return a MediaData holding the current values."""
        return MediaData(
            content_id=self._content_id,
            content_type=self._content_type,
            stream_type=self._stream_type,
            duration=self._duration,
            metadata=self._metadata(),
            custom_data=self._custom_data,
        )


class GenericMediaDataBuilder(StandardMediaDataBuilder):
    """Builds media items carrying generic metadata."""

    def __init__(
        self,
        content_id: str,
        content_type: str,
        stream_type: StreamType | str,
    ) -> None:
        super().__init__(content_id, content_type, stream_type)
        self._image_urls: list[str] | None = None
        self._title: str | None = None
        self._subtitle: str | None = None
        self._release_date: datetime | None = None

    def set_image_urls(self, image_urls: Iterable[str]) -> None:
        """Set the images shown for the media; ignored if any URL is invalid."""
        urls = list(image_urls)
        if all(_is_request_uri(url) for url in urls):
            self._image_urls = urls

    def set_title(self, title: str | None) -> None:
        """Set the displayed title."""
        self._title = title

    def set_subtitle(self, subtitle: str | None) -> None:
        """Set the displayed subtitle."""
        self._subtitle = subtitle

    def set_release_date(self, release_date: datetime | None) -> None:
        """Set the release date of the media."""
        self._release_date = release_date

    def _metadata(self) -> dict[str, Any]:
        return GenericMediaMetadata(
            title=self._title,
            images=self._image_urls,
            subtitle=self._subtitle,
            release_date=convert_date_to_iso8601(self._release_date),
        ).to_dict()

    def build(self) -> MediaData:
        """Return a MediaData with generic metadata."""
        return super().build()


class PhotoTrackMediaDataBuilder(StandardMediaDataBuilder):
    """Builds media items carrying photo metadata."""

    def __init__(
        self,
        content_id: str = "",
        content_type: str = "",
        stream_type: StreamType | str = "",
    ) -> None:
        super().__init__(content_id, content_type, stream_type)
        self._title = ""
        self._artist = ""
        self._location = ""
        self._latitude = 0.0
        self._longitude = 0.0
        self._width = 0
        self._height = 0
        self._creation_date_time = ""

    def set_title(self, title: str) -> None:
        """Set the photo's title."""
        self._title = title

    def set_artist(self, artist: str) -> None:
        """Set the photographer."""
        self._artist = artist

    def set_location(self, location: str) -> None:
        """Set the place the photo was taken."""
        self._location = location

    def set_latitude(self, latitude: float) -> None:
        """Set the latitude where the photo was taken."""
        self._latitude = float(latitude)

    def set_longitude(self, longitude: float) -> None:
        """Set the longitude where the photo was taken."""
        self._longitude = float(longitude)

    def set_width(self, width: int) -> None:
        """Set the width of the photo in pixels."""
        self._width = int(width)

    def set_height(self, height: int) -> None:
        """Set the height of the photo in pixels."""
        self._height = int(height)

    def set_creation_time(self, creation_time: datetime) -> None:
        """Set when the photo was taken."""
        self._creation_date_time = convert_date_to_iso8601(creation_time) or ""

    def _metadata(self) -> dict[str, Any]:
        return PhotoTrackMediaMetadata(
            title=self._title,
            artist=self._artist,
            location=self._location,
            latitude=self._latitude,
            longitude=self._longitude,
            width=self._width,
            height=self._height,
            creation_date_time=self._creation_date_time,
        ).to_dict()

    def build(self) -> MediaData:
        """Return a MediaData with photo metadata."""
        return super().build()