"""Controller for the YouTube receiver application."""

from __future__ import annotations

import logging
import queue
from typing import Any, Callable

import requests

from castv2.config import YOUTUBE_NAMESPACE
from castv2.headers import PayloadHeaders
from castv2.media_connection import MediaConnection
from castv2.receiver_controller import ReceiverController
from castv2.receiver_types import InitializationError
from castv2.transport import CastMessage
from castv2.youtube_requests import ScreenStatus
from castv2.youtube_session import Session

logger = logging.getLogger(__name__)

MESSAGE_TYPE_GET_SESSION_ID = "getMdxSessionStatus"
RESPONSE_TYPE_SESSION_STATUS = "mdxSessionStatus"
SCREEN_ID_TIMEOUT = 5.0

_RECOVERABLE = (requests.RequestException, ValueError)


class YoutubeController:
    """Plays and queues videos in the YouTube receiver.

    The receiver reports the screen it runs on; a lounge session for that
    screen is then used to manage the playlist.
    """

    def __init__(
        self,
        client: Any,
        source_id: str,
        receiver: ReceiverController,
        screen_id_timeout: float = SCREEN_ID_TIMEOUT,
    ) -> None:
        self.connection = MediaConnection(client, receiver, YOUTUBE_NAMESPACE, source_id)
        self.session = Session("0")
        self.screen_id: str | None = None
        self.screen_id_timeout = screen_id_timeout
        self._incoming: queue.Queue[str] = queue.Queue(maxsize=1)
        self.connection.on_message(RESPONSE_TYPE_SESSION_STATUS, self._on_status)

    def play_video(self, video_id: str, list_id: str = "") -> None:
        """Start a new playlist with ``video_id``; raise InitializationError on failure."""
        if self.session.initialized:
            try:
                self.session.initialize_queue(video_id, list_id)
                return
            except _RECOVERABLE as err:
                logger.debug("Queue initialisation failed, reconnecting: %s", err)
        if not self._ensure_session_active():
            raise InitializationError()
        try:
            self.session.initialize_queue(video_id, list_id)
        except _RECOVERABLE as err:
            logger.debug("Queue initialisation failed: %s", err)

    def clear_playlist(self) -> None:
        """Remove every video from the playlist."""
        self._run_fast(self.session_call(Session.clear_queue))

    def play_next(self, video_id: str) -> None:
        """Insert a video to play after the current one."""
        self._run_fast(self.session_call(Session.play_next, video_id))

    def add_to_queue(self, video_id: str) -> None:
        """Append a video to the playlist."""
        self._run_fast(self.session_call(Session.add_to_queue, video_id))

    def remove_from_queue(self, video_id: str) -> None:
        """Remove a video from the playlist."""
        self._run_fast(self.session_call(Session.remove_from_queue, video_id))

    def session_call(self, action: Callable[..., None], *args: str) -> Callable[[], None]:
        """Return a command running ``action`` on whichever session is current."""
        return lambda: action(self.session, *args)

    def _run_fast(self, command: Callable[[], None]) -> None:
        try:
            command()
            return
        except _RECOVERABLE as err:
            logger.debug("Command failed, reconnecting: %s", err)
        if self._ensure_session_active():
            try:
                command()
            except _RECOVERABLE as err:
                logger.debug("Command failed again: %s", err)

    def _ensure_session_active(self) -> bool:
        try:
            screen_id = self._get_screen_id(self.screen_id_timeout)
        except TimeoutError as err:
            logger.warning("Failed to get screenID: %s", err)
            return False
        if screen_id == self.screen_id and self.session.initialized:
            return True
        self.session = Session(screen_id)
        try:
            self.session.start_session()
        except _RECOVERABLE as err:
            logger.debug("Failed to start YouTube session: %s", err)
        self.screen_id = screen_id
        return True

    def _on_status(self, message: CastMessage) -> None:
        try:
            status = ScreenStatus.from_json(message.payload_utf8 or "")
        except ValueError:
            return
        while True:
            try:
                self._incoming.put_nowait(status.screen_id)
                return
            except queue.Full:
                try:
                    self._incoming.get_nowait()
                except queue.Empty:
                    pass

    def _get_screen_id(self, timeout: float) -> str:
        while True:
            try:
                self._incoming.get_nowait()
            except queue.Empty:
                break
        try:
            self.connection.request(PayloadHeaders(type=MESSAGE_TYPE_GET_SESSION_ID), 0)
        except (OSError, LookupError) as err:
            logger.debug("Screen ID request got no direct reply: %s", err)
        try:
            return self._incoming.get(timeout=timeout)
        except queue.Empty:
            raise TimeoutError("Failed to get screen ID, timed out") from None