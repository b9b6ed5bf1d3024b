"""Requests to the YouTube lounge API used to drive the YouTube receiver."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import urlencode

import requests

from castv2.headers import PayloadHeaders

YOUTUBE_BASE_URL = "https://www.youtube.com/"
BIND_URL = YOUTUBE_BASE_URL + "api/lounge/bc/bind"
LOUNGE_TOKEN_URL = YOUTUBE_BASE_URL + "api/lounge/pairing/get_lounge_token_batch"

DEFAULT_HEADERS = {
    "Origin": YOUTUBE_BASE_URL,
    "Content-Type": "application/x-www-form-urlencoded",
}

LOUNGE_ID_HEADER = "X-YouTube-LoungeId-Token"
REQUEST_ID_KEY = "RID"
SESSION_ID_KEY = "SID"
VERSION_KEY = "VER"
C_VERSION_KEY = "CVER"
G_SESSION_ID_KEY = "gsessionid"

BIND_VERSION = "8"
BIND_C_VERSION = "1"

SCREEN_IDS_KEY = "screen_ids"

# Keys of the queue and action request bodies.
LIST_ID_KEY = "_listId"
ACTION_KEY = "__sc"
CURRENT_TIME_KEY = "_currentTime"
CURRENT_INDEX_KEY = "_currentIndex"
AUDIO_ONLY_KEY = "_audioOnly"
COUNT_KEY = "count"
VIDEO_ID_KEY = "_videoId"

DEFAULT_TIME = "0"
DEFAULT_INDEX = -1
DEFAULT_AUDIO_ONLY_SETTING = "false"
DEFAULT_COUNT = 1

ACTION_SET_PLAYLIST = "setPlaylist"
ACTION_REMOVE_VIDEO = "removeVideo"
ACTION_INSERT_VIDEO = "insertVideo"
ACTION_ADD_VIDEO = "addVideo"
ACTION_CLEAR_QUEUE = "clearPlaylist"

REQUEST_PREFIX_FORMAT = "req{}"

# Identity presented to the lounge when binding a screen.
DEFAULT_DEVICE_TYPE = "REMOTE_CONTROL"
DEFAULT_DEVICE_NAME = "GOCAST_REMOTE_CONTROL"
DEFAULT_DEVICE_ID = "GOCAST"
BIND_PAIRING_TYPE = "cast"
DEFAULT_APP_NAME = "GOCAST_REMOTE_APP"
MDX_VERSION = "\x03"

BIND_DATA: dict[str, list[str]] = {
    "device": [DEFAULT_DEVICE_TYPE],
    "id": [DEFAULT_DEVICE_ID],
    "name": [DEFAULT_DEVICE_ID],
    "mdx-version": [MDX_VERSION],
    "pairing_type": [BIND_PAIRING_TYPE],
    "app": [DEFAULT_APP_NAME],
}

# In a bind response, "c" carries the session ID and "S" the gsession ID.
_SESSION_ID_RE = re.compile(r'"c",\s*?"(.*?)",\"')
_G_SESSION_ID_RE = re.compile(r'"S",\s*?"(.*?)"]')


class BindResponseError(ValueError):
    """A bind response lacks the session identifiers."""


@dataclass
class RequestComponents:
    """The parts of a POST request to the lounge API."""

    url: str
    body: Any = None
    header: dict[str, str] = field(default_factory=dict)
    params: dict[str, Any] = field(default_factory=dict)

    def post(self) -> requests.Response:
        """Send the request and return the response."""
        return requests.post(self.url, headers=self.header, params=self.params, data=self.body)


@dataclass
class SessionRequestParameters:
    """Values needed to address a request to a bound lounge session."""

    video_id: str
    lounge_id: str
    request_count: int
    session_request_count: int
    session_id: str
    g_session_id: str
    action_id: str = ""
    list_id: str = ""


@dataclass
class ScreenTokenData:
    """A screen and the lounge token paired with it."""

    screen_id: str = ""
    lounge_token: str = ""
    expiration: int = 0


@dataclass
class LoungeTokenResponse:
    """All screen/lounge-token pairings returned by the lounge."""

    screens: list[ScreenTokenData] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LoungeTokenResponse:
        """Build the response from its decoded JSON form."""
        return cls(
            screens=[
                ScreenTokenData(
                    screen_id=entry.get("screenId", ""),
                    lounge_token=entry.get("loungeToken", ""),
                    expiration=entry.get("expiration", 0),
                )
                for entry in data.get("screens") or []
            ]
        )


@dataclass
class ScreenStatus(PayloadHeaders):
    """Status of the YouTube receiver, naming the screen it runs on."""

    type: str = ""
    screen_id: str = ""

    @classmethod
    def from_json(cls, text: str) -> ScreenStatus:
        """Decode a session status payload; raise ValueError if malformed."""
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("screen status payload is not a JSON object")
        inner = data.get("data") or {}
        if not isinstance(inner, dict):
            raise ValueError("screen status data is not a JSON object")
        return cls(
            type=data.get("type", ""),
            request_id=data.get("requestId"),
            screen_id=inner.get("screenId", ""),
        )


def _encode_form(values: Mapping[str, list[str]]) -> str:
    return urlencode(sorted(values.items()), doseq=True)


def _headers(lounge_id: str) -> dict[str, str]:
    return {LOUNGE_ID_HEADER: lounge_id, **DEFAULT_HEADERS}


def _session_query(params: SessionRequestParameters) -> dict[str, Any]:
    return {
        SESSION_ID_KEY: params.session_id,
        G_SESSION_ID_KEY: params.g_session_id,
        REQUEST_ID_KEY: params.request_count,
        VERSION_KEY: BIND_VERSION,
        C_VERSION_KEY: BIND_C_VERSION,
    }


def format_session_parameters(
    params: Mapping[str, list[str]], request_count: int
) -> dict[str, list[str]]:
    """Prefix every key starting with an underscore by ``req<request_count>``."""
    prefix = REQUEST_PREFIX_FORMAT.format(request_count)
    return {
        (prefix + key if key.startswith("_") else key): value
        for key, value in params.items()
    }


def create_bind_request(request_id: int, lounge_token: str) -> RequestComponents:
    """Return the request that binds this controller to a lounge."""
    return RequestComponents(
        url=BIND_URL,
        body=_encode_form(BIND_DATA),
        header=_headers(lounge_token),
        params={
            REQUEST_ID_KEY: request_id,
            VERSION_KEY: BIND_VERSION,
            C_VERSION_KEY: BIND_C_VERSION,
        },
    )


def create_action_request(params: SessionRequestParameters) -> RequestComponents:
    """Return the request performing a queue action on a bound session."""
    body = {
        ACTION_KEY: [params.action_id],
        VIDEO_ID_KEY: [params.video_id],
        COUNT_KEY: [str(DEFAULT_COUNT)],
    }
    return RequestComponents(
        url=BIND_URL,
        body=_encode_form(format_session_parameters(body, params.session_request_count)),
        header=_headers(params.lounge_id),
        params=_session_query(params),
    )


def create_initialize_queue_request(params: SessionRequestParameters) -> RequestComponents:
    """Return the request that replaces the playlist with a new video."""
    body = {
        LIST_ID_KEY: [params.list_id],
        ACTION_KEY: [ACTION_SET_PLAYLIST],
        CURRENT_TIME_KEY: [DEFAULT_TIME],
        CURRENT_INDEX_KEY: [str(DEFAULT_INDEX)],
        AUDIO_ONLY_KEY: [DEFAULT_AUDIO_ONLY_SETTING],
        VIDEO_ID_KEY: [params.video_id],
        COUNT_KEY: [str(DEFAULT_COUNT)],
    }
    return RequestComponents(
        url=BIND_URL,
        body=_encode_form(format_session_parameters(body, params.session_request_count)),
        header=_headers(params.lounge_id),
        params=_session_query(params),
    )


def parse_session_id(bind_response: str) -> str:
    """Return the session ID found in a bind response."""
    match = _SESSION_ID_RE.search(bind_response)
    if match is None:
        raise BindResponseError("Failed to find sessionID inside bind response")
    return match.group(1)


def parse_g_session_id(bind_response: str) -> str:
    """Return the gsession ID found in a bind response."""
    match = _G_SESSION_ID_RE.search(bind_response)
    if match is None:
        raise BindResponseError("Failed to find GSessionID inside bind response")
    return match.group(1)


def parse_response(bind_response: Any) -> tuple[str, str]:
    """Return ``(session_id, g_session_id)`` from a bind response or its text."""
    text = bind_response if isinstance(bind_response, str) else bind_response.text
    return parse_session_id(text), parse_g_session_id(text)


def get_lounge_token(screen_id: str) -> str:
    """Fetch the lounge token paired with ``screen_id``."""
    payload = urlencode({SCREEN_IDS_KEY: screen_id})
    response = requests.post(LOUNGE_TOKEN_URL, headers=dict(DEFAULT_HEADERS), data=payload)
    data = response.json()
    if not isinstance(data, dict):
        raise ValueError("lounge token response is not a JSON object")
    token_response = LoungeTokenResponse.from_dict(data)
    if not token_response.screens:
        raise ValueError("lounge token response holds no screens")
    return token_response.screens[0].lounge_token