"""Media-channel payloads, status records and their validation."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from castv2.headers import PayloadHeaders

MAX_CONTENT_ID_LENGTH = 1000

GENERIC_MEDIA_METADATA_TYPE = 0
MOVIE_METADATA_TYPE = 1
TV_SHOW_METADATA_TYPE = 2
MUSIC_TRACK_METADATA_TYPE = 3
PHOTO_MEDIA_METADATA_TYPE = 4

SEEK_COMMAND_TYPE = "SEEK"
SEEK_RESUME_STATE = "PLAYBACK_START"


class ContentIDLengthError(ValueError):
    """A content ID is longer than the receiver accepts."""

    def __init__(self, length: int) -> None:
        self.length = length
        super().__init__(
            f"Length of string too long ({length}), "
            f"must be shorter than {MAX_CONTENT_ID_LENGTH}."
        )


class MimeTypeError(ValueError):
    """A content type string is not a valid media type."""


class InvalidArgumentError(ValueError):
    """An argument was rejected, with the reason why."""

    def __init__(self, arg: Any, reason: str) -> None:
        self.arg = arg
        self.reason = reason
        super().__init__(f"{arg} is not valid argument: {reason}")


class StreamType(str, Enum):
    """How the receiver should treat the media stream."""

    NONE = "NONE"
    BUFFERED = "BUFFERED"
    LIVE = "LIVE"


def new_content_id(content_id_string: str) -> str:
    """Validate a content ID (usually the media URL) and return it."""
    length = len(content_id_string.encode("utf-8"))
    if length > MAX_CONTENT_ID_LENGTH:
        raise ContentIDLengthError(length)
    return content_id_string


_TSPECIALS = frozenset('()<>@,;:\\"/[]?=')


def _is_token_char(ch: str) -> bool:
    return 0x20 < ord(ch) < 0x7F and ch not in _TSPECIALS


def _consume_token(text: str) -> tuple[str, str]:
    for index, ch in enumerate(text):
        if not _is_token_char(ch):
            return text[:index], text[index:]
    return text, ""


def _consume_value(text: str) -> tuple[str, str]:
    if not text:
        return "", text
    if text[0] != '"':
        return _consume_token(text)
    buffer: list[str] = []
    chars = iter(enumerate(text[1:], start=1))
    for index, ch in chars:
        if ch == '"':
            return "".join(buffer), text[index + 1:]
        if ch == "\\" and index + 1 < len(text) and text[index + 1] in _TSPECIALS:
            buffer.append(text[index + 1])
            next(chars, None)
            continue
        if ch in "\r\n":
            return "", text
        buffer.append(ch)
    return "", text


def _consume_media_param(text: str) -> tuple[str, str, str]:
    rest = text.lstrip()
    if not rest.startswith(";"):
        return "", "", text
    rest = rest[1:].lstrip()
    name, rest = _consume_token(rest)
    name = name.lower()
    if not name:
        return "", "", text
    rest = rest.lstrip()
    if not rest.startswith("="):
        return "", "", text
    rest = rest[1:].lstrip()
    value, remainder = _consume_value(rest)
    if not value and remainder == rest:
        return "", "", text
    return name, value, remainder


def _check_media_type(media_type: str) -> None:
    main, rest = _consume_token(media_type)
    if not main:
        raise MimeTypeError("mime: no media type")
    if not rest:
        return
    if not rest.startswith("/"):
        raise MimeTypeError("mime: expected slash after first token")
    sub, rest = _consume_token(rest[1:])
    if not sub:
        raise MimeTypeError("mime: expected token after slash")
    if rest:
        raise MimeTypeError("mime: unexpected content after media subtype")


def _parse_media_type(text: str) -> tuple[str, dict[str, str]]:
    head, separator, tail = text.partition(";")
    media_type = head.lower().strip()
    _check_media_type(media_type)
    params: dict[str, str] = {}
    rest = separator + tail
    while rest:
        rest = rest.lstrip()
        if not rest:
            break
        name, value, remainder = _consume_media_param(rest)
        if not name:
            if remainder.strip() == ";":
                break
            raise MimeTypeError("mime: invalid media parameter")
        if name in params and params[name] != value:
            raise MimeTypeError("mime: duplicate parameter name")
        params[name] = value
        rest = remainder
    return media_type, params


def new_content_type(content_type_string: str) -> str:
    """Validate a MIME content type and return it unchanged."""
    _parse_media_type(content_type_string)
    return content_type_string


@dataclass
class MediaData:
    """Description of a media item for the default media receiver."""

    content_id: str = ""
    content_type: str = ""
    stream_type: str = ""
    duration: float | None = None
    metadata: dict[str, Any] | None = None
    custom_data: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready dictionary for this media item."""
        result: dict[str, Any] = {
            "contentId": self.content_id,
            "contentType": self.content_type,
            "streamType": str(getattr(self.stream_type, "value", self.stream_type)),
        }
        if self.duration is not None:
            result["duration"] = self.duration
        if self.metadata:
            result["metadata"] = self.metadata
        if self.custom_data:
            result["customData"] = self.custom_data
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MediaData:
        """Build a media item from its decoded JSON form."""
        return cls(
            content_id=data.get("contentId", ""),
            content_type=data.get("contentType", ""),
            stream_type=data.get("streamType", ""),
            duration=data.get("duration"),
            metadata=data.get("metadata"),
            custom_data=data.get("customData"),
        )


@dataclass
class StandardMediaMetadata:
    """Fields common to every kind of media metadata."""

    metadata_type: int = GENERIC_MEDIA_METADATA_TYPE
    title: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready dictionary for this metadata."""
        result: dict[str, Any] = {"metadataType": self.metadata_type}
        if self.title is not None:
            result["title"] = self.title
        return result


@dataclass
class GenericMediaMetadata(StandardMediaMetadata):
    """Metadata for a generic media item."""

    images: list[str] | None = None
    subtitle: str | None = None
    release_date: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.images:
            result["images"] = list(self.images)
        if self.subtitle is not None:
            result["subtitle"] = self.subtitle
        if self.release_date is not None:
            result["releaseDate"] = self.release_date
        return result


@dataclass
class PhotoTrackMediaMetadata(StandardMediaMetadata):
    """Metadata for a photo."""

    metadata_type: int = PHOTO_MEDIA_METADATA_TYPE
    artist: str = ""
    location: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    width: int = 0
    height: int = 0
    creation_date_time: str = ""

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result.update(
            artist=self.artist,
            location=self.location,
            latitude=self.latitude,
            longitude=self.longitude,
            width=self.width,
            height=self.height,
            creationDateTime=self.creation_date_time,
        )
        return result


@dataclass
class Volume:
    """Stream volume of a media session."""

    level: float | None = None
    muted: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.level is not None:
            result["level"] = self.level
        if self.muted is not None:
            result["muted"] = self.muted
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Volume:
        return cls(level=data.get("level"), muted=data.get("muted"))


@dataclass
class MediaStatus(PayloadHeaders):
    """Status of one media session reported by the receiver."""

    type: str = ""
    media_session_id: int = 0
    playback_rate: float = 0.0
    player_state: str = ""
    current_time: float = 0.0
    supported_media_commands: int = 0
    volume: Volume | None = None
    custom_data: dict[str, Any] | None = None
    idle_reason: str = ""
    media: MediaData = field(default_factory=MediaData)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MediaStatus:
        """Build a media status from its decoded JSON form."""
        volume = data.get("volume")
        media = data.get("media")
        return cls(
            type=data.get("type", ""),
            request_id=data.get("requestId"),
            media_session_id=data.get("mediaSessionId", 0),
            playback_rate=data.get("playbackRate", 0.0),
            player_state=data.get("playerState", ""),
            current_time=data.get("currentTime", 0.0),
            supported_media_commands=data.get("supportedMediaCommands", 0),
            volume=Volume.from_dict(volume) if volume is not None else None,
            custom_data=data.get("customData"),
            idle_reason=data.get("idleReason", ""),
            media=MediaData.from_dict(media) if media is not None else MediaData(),
        )


@dataclass
class MediaStatusResponse(PayloadHeaders):
    """A MEDIA_STATUS message holding the status of each media session."""

    type: str = ""
    status: list[MediaStatus] = field(default_factory=list)

    @classmethod
    def from_json(cls, text: str) -> MediaStatusResponse:
        """Decode a MEDIA_STATUS payload; raise ValueError if malformed."""
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("media status payload is not a JSON object")
        return cls(
            type=data.get("type", ""),
            request_id=data.get("requestId"),
            status=[MediaStatus.from_dict(entry) for entry in data.get("status") or []],
        )


@dataclass
class MediaCommand(PayloadHeaders):
    """A simple command addressed to a media session."""

    media_session_id: int = 0

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["mediaSessionId"] = self.media_session_id
        return payload


@dataclass
class LoadCommand(PayloadHeaders):
    """Request that the receiver load and optionally play a media item."""

    type: str = "LOAD"
    media: MediaData = field(default_factory=MediaData)
    autoplay: bool = False
    current_time: float = 0.0
    custom_data: dict[str, Any] | None = None

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["media"] = self.media.to_dict()
        if self.autoplay:
            payload["autoplay"] = self.autoplay
        if self.current_time:
            payload["currentTime"] = self.current_time
        if self.custom_data:
            payload["customData"] = self.custom_data
        return payload


@dataclass
class SeekCommand(PayloadHeaders):
    """Move playback of the current media to a position in seconds."""

    type: str = SEEK_COMMAND_TYPE
    current_time: float = 0.0
    resume_state: str = SEEK_RESUME_STATE

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["currentTime"] = self.current_time
        payload["resumeState"] = self.resume_state
        return payload


def create_seek_command(position: float) -> SeekCommand:
    """Return a seek command to ``position`` seconds."""
    return SeekCommand(current_time=position)