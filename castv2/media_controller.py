"""Controller for the default media receiver: load, play, pause, seek."""

from __future__ import annotations

import logging
import queue
from dataclasses import dataclass, field
from typing import Any

from castv2.config import EVENT_GET_STATUS, EVENT_LOAD, MEDIA_NAMESPACE
from castv2.headers import PayloadHeaders
from castv2.media_builders import GenericMediaDataBuilder
from castv2.media_connection import MediaConnection
from castv2.media_types import (
    LoadCommand,
    MediaCommand,
    MediaData,
    MediaStatus,
    MediaStatusResponse,
    StreamType,
    create_seek_command,
    new_content_id,
    new_content_type,
)
from castv2.receiver_controller import ReceiverController
from castv2.transport import CastMessage

logger = logging.getLogger(__name__)

RESPONSE_TYPE_MEDIA_STATUS = "MEDIA_STATUS"
COMMAND_PLAY = "PLAY"
COMMAND_PAUSE = "PAUSE"
COMMAND_STOP = "STOP"
COMMAND_NEXT = "NEXT"
COMMAND_PREVIOUS = "PREVIOUS"
COMMAND_EDIT_TRACKS_INFO = "EDIT_TRACKS_INFO"

SKIP_TIME_BUFFER = 5.0
SUBTITLE_TRACK_ID = 1

# The first attempt of a command is fired without waiting for a reply.
_QUICK_TIMEOUT = 0.0


@dataclass
class _EditTracksCommand(PayloadHeaders):
    type: str = COMMAND_EDIT_TRACKS_INFO
    media_session_id: int = 0
    active_track_ids: list[int] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["mediaSessionId"] = self.media_session_id
        payload["activeTrackIds"] = list(self.active_track_ids)
        return payload


class MediaController:
    """Loads media and controls its playback on the media receiver.

    Each status received is published on ``incoming``; only the latest is kept.
    """

    def __init__(
        self, client: Any, source_id: str, receiver_controller: ReceiverController
    ) -> None:
        self.connection = MediaConnection(client, receiver_controller, MEDIA_NAMESPACE, source_id)
        self.current_status: MediaStatus | None = None
        self.media_session_id = 0
        self.incoming: queue.Queue[list[MediaStatus]] = queue.Queue(maxsize=1)
        self.connection.on_message(RESPONSE_TYPE_MEDIA_STATUS, self._handle_status)

    def _publish(self, statuses: list[MediaStatus]) -> None:
        while True:
            try:
                self.incoming.put_nowait(statuses)
                return
            except queue.Full:
                try:
                    self.incoming.get_nowait()
                except queue.Empty:
                    pass

    def _handle_status(self, message: CastMessage) -> None:
        try:
            self._on_status(message)
        except ValueError as err:
            logger.debug("Ignoring malformed media status: %s", err)

    def _on_status(self, message: CastMessage) -> list[MediaStatus]:
        payload = message.payload_utf8 or ""
        try:
            response = MediaStatusResponse.from_json(payload)
        except ValueError as err:
            raise ValueError(f"Failed to unmarshal status message:{err} - {payload}") from err
        statuses = list(response.status or [])
        if statuses:
            self.media_session_id = statuses[0].media_session_id
            if self.current_status is not None:
                self.current_status = statuses[0]
        self._publish(statuses)
        return statuses

    def get_status(self, timeout: float) -> list[MediaStatus]:
        """Request and return the status of the media session."""
        message = self.connection.request(PayloadHeaders(type=EVENT_GET_STATUS), timeout)
        return self._on_status(message)

    def load(self, url: str, content_type: str, timeout: float) -> CastMessage:
        """Load and autoplay the media at ``url`` of MIME type ``content_type``."""
        media = self._construct_media_data(url, content_type)
        command = LoadCommand(type=EVENT_LOAD, media=media, autoplay=True)
        return self.connection.request(command, timeout)

    def play(self, timeout: float) -> CastMessage:
        """Resume playback."""
        return self._send_command(COMMAND_PLAY, timeout)

    def pause(self, timeout: float) -> CastMessage:
        """Pause playback."""
        return self._send_command(COMMAND_PAUSE, timeout)

    def stop(self, timeout: float) -> CastMessage:
        """Stop playback."""
        return self._send_command(COMMAND_STOP, timeout)

    def next(self, timeout: float) -> CastMessage:
        """Go to the next item in the queue."""
        return self._send_command(COMMAND_NEXT, timeout)

    def previous(self, timeout: float) -> CastMessage:
        """Go to the previous item in the queue."""
        return self._send_command(COMMAND_PREVIOUS, timeout)

    def rewind(self, timeout: float) -> CastMessage:
        """Seek to the beginning."""
        return self.seek(0, timeout)

    def skip(self, timeout: float) -> CastMessage:
        """Seek to just before the end of the current media."""
        media = self.current_status.media if self.current_status is not None else None
        if media is None or media.duration is None:
            raise ValueError("No media playing, can't skip")
        return self.seek(media.duration - SKIP_TIME_BUFFER, timeout)

    def seek(self, seconds: float, timeout: float) -> CastMessage:
        """Seek to ``seconds`` from the start of the media."""
        return self.connection.request(create_seek_command(seconds), timeout)

    def enable_subtitles(self, timeout: float) -> CastMessage:
        """Activate the subtitle track."""
        return self._edit_tracks([SUBTITLE_TRACK_ID], timeout)

    def disable_subtitles(self, timeout: float) -> CastMessage:
        """Deactivate every text track."""
        return self._edit_tracks([], timeout)

    def _edit_tracks(self, track_ids: list[int], timeout: float) -> CastMessage:
        self._update_for_new_session(timeout)
        command = _EditTracksCommand(
            media_session_id=self.media_session_id, active_track_ids=track_ids
        )
        return self.connection.request(command, timeout)

    def _construct_media_data(self, url: str, content_type: str) -> MediaData:
        checked_type = new_content_type(content_type)
        content_id = new_content_id(url)
        builder = GenericMediaDataBuilder(content_id, checked_type, StreamType("BUFFERED"))
        return builder.build()

    def _send_command(self, command: str, timeout: float) -> CastMessage:
        try:
            self.connection.request(
                MediaCommand(type=command, media_session_id=self.media_session_id),
                _QUICK_TIMEOUT,
            )
        except (OSError, LookupError) as err:
            logger.debug("Quick %s attempt got no reply: %s", command, err)
        self._update_for_new_session(timeout)
        return self.connection.request(
            MediaCommand(type=command, media_session_id=self.media_session_id), timeout
        )

    def _update_for_new_session(self, timeout: float) -> None:
        try:
            statuses = self.get_status(timeout)
        except (OSError, LookupError, ValueError) as err:
            logger.debug("Could not refresh media session: %s", err)
            return
        if statuses:
            self.media_session_id = statuses[0].media_session_id
            self.current_status = statuses[0]