"""Controller for the receiver namespace: status, applications and volume."""

from __future__ import annotations

import logging
import queue
from typing import Any

from castv2.config import (
    EVENT_GET_STATUS,
    EVENT_RECEIVER_STATUS,
    EVENT_SET_VOLUME,
    RECEIVER_NAMESPACE,
)
from castv2.headers import PayloadHeaders
from castv2.receiver_types import (
    LaunchRequest,
    ReceiverStatus,
    StatusResponse,
    StopRequest,
    Volume,
)
from castv2.transport import CastMessage

logger = logging.getLogger(__name__)


class ReceiverController:
    """Talks to the receiver application of a cast device.

    The most recent receiver status is published on ``incoming``.
    """

    def __init__(self, client: Any, source_id: str, destination_id: str) -> None:
        self.channel = client.new_channel(source_id, destination_id, RECEIVER_NAMESPACE)
        self.incoming: queue.Queue[ReceiverStatus] = queue.Queue(maxsize=1)
        self.channel.on_message(EVENT_RECEIVER_STATUS, self._on_status)

    def _publish(self, status: ReceiverStatus) -> None:
        while True:
            try:
                self.incoming.put_nowait(status)
                return
            except queue.Full:
                try:
                    self.incoming.get_nowait()
                except queue.Empty:
                    pass

    def _on_status(self, message: CastMessage) -> None:
        try:
            response = StatusResponse.from_json(message.payload_utf8 or "")
        except ValueError:
            return
        if response.status is not None:
            self._publish(response.status)

    def get_status(self, timeout: float) -> ReceiverStatus | None:
        """Request and return the current status of the device."""
        message = self.channel.request(PayloadHeaders(type=EVENT_GET_STATUS), timeout)
        self._on_status(message)
        payload = message.payload_utf8 or ""
        try:
            response = StatusResponse.from_json(payload)
        except ValueError as err:
            raise ValueError(f"Failed to unmarshal status message:{err} - {payload}") from err
        return response.status

    def launch_application(
        self, app_id: str, timeout: float, force_launch: bool = False
    ) -> CastMessage | None:
        """Launch an application; return the reply, or None if none came."""
        try:
            return self.channel.request(LaunchRequest(app_id=app_id), timeout)
        except OSError as err:
            logger.debug("Launch of %s got no reply: %s", app_id, err)
            return None

    def stop_application(self, session_id: str, timeout: float) -> CastMessage | None:
        """Stop an application session; return the reply, or None if none came."""
        try:
            return self.channel.request(StopRequest(session_id=session_id), timeout)
        except OSError as err:
            logger.debug("Stop of %s got no reply: %s", session_id, err)
            return None

    def set_volume(self, volume: Volume, timeout: float) -> CastMessage:
        """Set the device volume and return the reply."""
        return self.channel.request(
            ReceiverStatus(type=EVENT_SET_VOLUME, volume=volume), timeout
        )

    def get_volume(self, timeout: float) -> Volume | None:
        """Return the current device volume."""
        status = self.get_status(timeout)
        return status.volume if status is not None else None