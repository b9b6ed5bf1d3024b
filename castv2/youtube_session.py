"""A session with the YouTube lounge that controls a screen's playlist."""

from __future__ import annotations

import requests

from castv2.counter import Counter
from castv2.youtube_requests import (
    ACTION_ADD_VIDEO,
    ACTION_CLEAR_QUEUE,
    ACTION_INSERT_VIDEO,
    ACTION_REMOVE_VIDEO,
    SessionRequestParameters,
    create_action_request,
    create_bind_request,
    create_initialize_queue_request,
    get_lounge_token,
    parse_response,
)

_RECOVERABLE = (requests.RequestException, ValueError)


class Session:
    """A connection to the YouTube lounge for one screen."""

    def __init__(self, screen_id: str) -> None:
        self.screen_id = screen_id
        self.initialized = False
        self.session_id: str | None = None
        self.g_session_id: str | None = None
        self.lounge_id: str | None = None
        self._request_counter = Counter()
        self._session_counter = Counter()

    def start_session(self) -> None:
        """Fetch a lounge token for the screen and bind to it."""
        self.lounge_id = get_lounge_token(self.screen_id)
        self._bind_and_set_vars(self.screen_id, self.lounge_id)

    def play_next(self, video_id: str) -> None:
        """Insert a video to play after the current one."""
        self._send_action(ACTION_INSERT_VIDEO, video_id)

    def clear_queue(self) -> None:
        """Remove every video from the playlist."""
        self._send_action(ACTION_CLEAR_QUEUE, "")

    def add_to_queue(self, video_id: str) -> None:
        """Append a video to the playlist."""
        self._send_action(ACTION_ADD_VIDEO, video_id)

    def remove_from_queue(self, video_id: str) -> None:
        """Remove a video from the playlist."""
        self._send_action(ACTION_REMOVE_VIDEO, video_id)

    def initialize_queue(self, video_id: str, list_id: str) -> None:
        """Replace the playlist with ``video_id`` from list ``list_id``."""
        self._ensure_session_active()
        request = create_initialize_queue_request(self._parameters(video_id, list_id=list_id))
        self._handle_bad_response(request.post())

    def _send_action(self, action: str, video_id: str) -> None:
        try:
            self._ensure_session_active()
            request = create_action_request(self._parameters(video_id, action_id=action))
            response = request.post()
        except _RECOVERABLE:
            return
        self._handle_bad_response(response)

    def _parameters(
        self, video_id: str, *, action_id: str = "", list_id: str = ""
    ) -> SessionRequestParameters:
        assert self.lounge_id is not None
        assert self.session_id is not None and self.g_session_id is not None
        return SessionRequestParameters(
            video_id=video_id,
            lounge_id=self.lounge_id,
            request_count=self._request_counter.get_and_increment(),
            session_request_count=self._session_counter.get_and_increment(),
            session_id=self.session_id,
            g_session_id=self.g_session_id,
            action_id=action_id,
            list_id=list_id,
        )

    def _bind_and_set_vars(self, screen_id: str, lounge_id: str) -> None:
        session_id, g_session_id = self._bind(lounge_id)
        self.session_id = session_id
        self.g_session_id = g_session_id
        self.screen_id = screen_id
        self.lounge_id = lounge_id
        self.initialized = True

    def _bind(self, lounge_id: str) -> tuple[str, str]:
        self._request_counter.reset()
        self._session_counter.reset()
        request = create_bind_request(self._request_counter.get_and_increment(), lounge_id)
        return parse_response(request.post())

    def _in_session(self) -> bool:
        return self.lounge_id is not None and self.g_session_id is not None

    def _ensure_session_active(self) -> None:
        if not self._in_session():
            self.start_session()
            return
        assert self.lounge_id is not None
        self._bind_and_set_vars(self.screen_id, self.lounge_id)

    def _handle_bad_response(self, response: requests.Response | None) -> None:
        if response is None or self.lounge_id is None:
            return
        if response.status_code in (400, 404):
            try:
                self._bind_and_set_vars(self.screen_id, self.lounge_id)
            except _RECOVERABLE:
                pass