"""A channel to a running application session, set up on demand."""

from __future__ import annotations

from typing import Any, Callable

from castv2.config import DEFAULT_TIMEOUT
from castv2.connection import ConnectionController
from castv2.headers import PayloadHeaders
from castv2.receiver_controller import ReceiverController
from castv2.receiver_types import ApplicationSession
from castv2.transport import CastMessage, Channel

Listener = Callable[[CastMessage], None]


class MediaConnection:
    """Connects to the application session that serves one namespace."""

    def __init__(
        self,
        client: Any,
        receiver_controller: ReceiverController,
        namespace: str,
        source_id: str,
    ) -> None:
        self.client = client
        self.receiver_controller = receiver_controller
        self.namespace = namespace
        self.source_id = source_id
        self.channel: Channel | None = None
        self.connection_controller: ConnectionController | None = None
        self.session_id: str | None = None
        self._listeners: list[tuple[str, Listener]] = []

    def terminate(self, timeout: float) -> None:
        """Close the connection to the application session."""
        if self.connection_controller is not None:
            self.connection_controller.close()

    def on_message(self, response_type: str, callback: Listener) -> None:
        """Call ``callback`` for messages of ``response_type`` from the session."""
        self._listeners.append((response_type, callback))
        if self.channel is not None:
            self.channel.on_message(response_type, callback)

    def request(self, payload: PayloadHeaders, timeout: float) -> CastMessage:
        """Send a request to the session, connecting first if needed."""
        self._ensure_connection_active()
        assert self.channel is not None
        return self.channel.request(payload, timeout)

    def _ensure_connection_active(self) -> None:
        session = self._get_app_session()
        self.session_id = session.session_id
        if self.channel is None:
            self._refresh_connection()

    def _get_app_session(self) -> ApplicationSession:
        status = self.receiver_controller.get_status(DEFAULT_TIMEOUT)
        session = status.get_session_by_namespace(self.namespace) if status else None
        if session is None:
            raise LookupError("No session by that name")
        return session

    def _refresh_connection(self) -> None:
        self._perform_cleanup()
        session = self._get_app_session()
        if session.transport_id is None:
            raise LookupError("Failed to generate a connection")
        self._setup(session.transport_id)

    def _perform_cleanup(self) -> None:
        if self.connection_controller is not None:
            self.connection_controller.close()
        self.connection_controller = None

    def _setup(self, transport_id: str) -> None:
        controller = ConnectionController(self.client, self.source_id, transport_id)
        controller.connect()
        self.connection_controller = controller
        if self.channel is None:
            channel = self.client.new_channel(self.source_id, transport_id, self.namespace)
            for response_type, callback in self._listeners:
                channel.on_message(response_type, callback)
            self.channel = channel
        else:
            self.channel.destination_id = transport_id