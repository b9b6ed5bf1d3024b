"""Headers common to every JSON payload sent on a cast channel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class PayloadHeaders:
    """The ``type`` and optional ``requestId`` carried by every payload."""

    type: str
    request_id: int | None = None

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready dictionary for these headers."""
        payload: dict[str, Any] = {"type": self.type}
        if self.request_id is not None:
            payload["requestId"] = self.request_id
        return payload