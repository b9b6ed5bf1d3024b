"""Controllers for the connection, heartbeat and DashCast namespaces."""

from __future__ import annotations

import logging
import threading
from typing import Any

from castv2.config import (
    CONNECTION_NAMESPACE,
    DASHCAST_NAMESPACE,
    EVENT_CLOSE,
    EVENT_CONNECT,
    EVENT_PING,
    EVENT_PONG,
    HEARTBEAT_NAMESPACE,
)
from castv2.headers import PayloadHeaders
from castv2.receiver_types import DashCastLoadCommand
from castv2.transport import CastMessage

logger = logging.getLogger(__name__)

HEARTBEAT_INTERVAL = 5.0


class ConnectionController:
    """Opens and closes the virtual connection to a cast endpoint."""

    def __init__(self, client: Any, source_id: str, destination_id: str) -> None:
        self.channel = client.new_channel(source_id, destination_id, CONNECTION_NAMESPACE)

    def connect(self) -> None:
        """Open the connection to the endpoint."""
        self.channel.send(PayloadHeaders(type=EVENT_CONNECT))

    def close(self) -> None:
        """Close the connection to the endpoint."""
        self.channel.send(PayloadHeaders(type=EVENT_CLOSE))


class HeartbeatController:
    """Keeps a connection alive by exchanging PING and PONG messages."""

    def __init__(
        self,
        client: Any,
        source_id: str,
        destination_id: str,
        interval: float = HEARTBEAT_INTERVAL,
    ) -> None:
        self.channel = client.new_channel(source_id, destination_id, HEARTBEAT_NAMESPACE)
        self.interval = interval
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None
        self.channel.on_message(EVENT_PING, self._on_ping)

    def _on_ping(self, _message: CastMessage) -> None:
        self.channel.send(PayloadHeaders(type=EVENT_PONG))

    def _run(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(self.interval):
            try:
                self.channel.send(PayloadHeaders(type=EVENT_PING))
            except OSError as err:
                logger.debug("Failed to send heartbeat: %s", err)

    def start(self) -> None:
        """Send a PING every interval until stopped."""
        self.stop()
        stop_event = threading.Event()
        thread = threading.Thread(
            target=self._run, args=(stop_event,), name="castv2-heartbeat", daemon=True
        )
        self._stop_event = stop_event
        self._thread = thread
        thread.start()

    def stop(self) -> None:
        """Stop sending heartbeats."""
        if self._stop_event is None:
            return
        self._stop_event.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()
        self._stop_event = None
        self._thread = None


class DashCastController:
    """Commands for the DashCast receiver, which displays web pages."""

    def __init__(self, client: Any, source_id: str, destination_id: str) -> None:
        self.channel = client.new_channel(source_id, destination_id, DASHCAST_NAMESPACE)

    def load(self, url: str, reload_time: float, force_launch: bool) -> None:
        """Show ``url``, reloading it periodically unless launch is forced.

        Forcing the launch may display pages that block iframe embedding, but
        prevents reloading and makes every load restart the application.
        """
        reload = not (force_launch or reload_time == 0)
        if reload:
            reload_time = 0
        command = DashCastLoadCommand(
            url=url, force=force_launch, reload=reload, reload_time=int(reload_time)
        )
        try:
            self.channel.send(command)
        except OSError as err:
            raise OSError(f"Failed to send play command: {err}") from err