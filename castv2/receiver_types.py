"""Receiver-channel payloads and status records."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from castv2.config import EVENT_LAUNCH, EVENT_STOP
from castv2.headers import PayloadHeaders


@dataclass
class ApplicationData:
    """Identifier and channel namespace of a receiver application."""

    id: str
    namespace: str


class InitializationError(Exception):
    """A receiver application could not be initialised."""

    def __init__(self) -> None:
        super().__init__("Failed to initialize")


@dataclass
class DashCastLoadCommand:
    """Ask the DashCast receiver to show a web page."""

    url: str
    force: bool = False
    reload: bool = False
    reload_time: int = 0

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready dictionary for this command."""
        return {
            "url": self.url,
            "force": self.force,
            "reload": self.reload,
            "reload_time": self.reload_time,
        }


@dataclass
class Namespace:
    """A channel namespace supported by an application."""

    name: str


@dataclass
class ApplicationSession:
    """An application running on the receiver."""

    app_id: str | None = None
    display_name: str | None = None
    namespaces: list[Namespace] = field(default_factory=list)
    session_id: str | None = None
    status_text: str | None = None
    transport_id: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ApplicationSession:
        """Build a session from its decoded JSON form."""
        return cls(
            app_id=data.get("appId"),
            display_name=data.get("displayName"),
            namespaces=[Namespace(entry.get("name", "")) for entry in data.get("namespaces") or []],
            session_id=data.get("sessionId"),
            status_text=data.get("statusText"),
            transport_id=data.get("transportId"),
        )

    def _to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"namespaces": [{"name": ns.name} for ns in self.namespaces]}
        optional = {
            "appId": self.app_id,
            "displayName": self.display_name,
            "sessionId": self.session_id,
            "statusText": self.status_text,
            "transportId": self.transport_id,
        }
        result.update({key: value for key, value in optional.items() if value is not None})
        return result


@dataclass
class Volume:
    """Volume of the receiver device."""

    level: float | None = None
    muted: bool | None = None

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready dictionary, leaving out unset fields."""
        result: dict[str, Any] = {}
        if self.level is not None:
            result["level"] = self.level
        if self.muted is not None:
            result["muted"] = self.muted
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Volume:
        """Build a volume from its decoded JSON form."""
        return cls(level=data.get("level"), muted=data.get("muted"))


@dataclass
class ReceiverStatus(PayloadHeaders):
    """Running applications and volume of the receiver."""

    type: str = ""
    applications: list[ApplicationSession] = field(default_factory=list)
    volume: Volume | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ReceiverStatus:
        """Build a receiver status from its decoded JSON form."""
        volume = data.get("volume")
        return cls(
            type=data.get("type", ""),
            request_id=data.get("requestId"),
            applications=[
                ApplicationSession.from_dict(entry) for entry in data.get("applications") or []
            ],
            volume=Volume.from_dict(volume) if volume is not None else None,
        )

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready dictionary, as used by SET_VOLUME."""
        payload = super().to_payload()
        payload["applications"] = (
            [app._to_dict() for app in self.applications] if self.applications else None
        )
        if self.volume is not None:
            payload["volume"] = self.volume.to_dict()
        return payload

    def get_session_by_namespace(self, namespace: str) -> ApplicationSession | None:
        """Return the first application supporting ``namespace``, or None."""
        return next(
            (
                app
                for app in self.applications
                if any(ns.name == namespace for ns in app.namespaces)
            ),
            None,
        )


@dataclass
class StatusResponse(PayloadHeaders):
    """A RECEIVER_STATUS message."""

    type: str = ""
    status: ReceiverStatus | None = None

    @classmethod
    def from_json(cls, text: str) -> StatusResponse:
        """Decode a RECEIVER_STATUS payload; raise ValueError if malformed."""
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("receiver status payload is not a JSON object")
        status = data.get("status")
        return cls(
            type=data.get("type", ""),
            request_id=data.get("requestId"),
            status=ReceiverStatus.from_dict(status) if status is not None else None,
        )


@dataclass
class LaunchRequest(PayloadHeaders):
    """Ask the receiver to launch an application."""

    type: str = EVENT_LAUNCH
    app_id: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.app_id:
            payload["appId"] = self.app_id
        return payload


@dataclass
class StopRequest(PayloadHeaders):
    """Ask the receiver to stop an application session."""

    type: str = EVENT_STOP
    session_id: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.session_id:
            payload["sessionID"] = self.session_id
        return payload