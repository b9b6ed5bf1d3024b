import json
from types import SimpleNamespace
from unittest import mock

import pytest

from castv2.config import RECEIVER_NAMESPACE, YOUTUBE_NAMESPACE
from castv2.headers import PayloadHeaders
from castv2.receiver_controller import ReceiverController
from castv2.receiver_types import InitializationError
from castv2.transport import CastMessage, Channel
from castv2.youtube_controller import YoutubeController
from castv2.youtube_requests import BIND_URL, LOUNGE_TOKEN_URL

BIND_TEXT = '[[0,["c","sid-1","",8]],[1,["S","gsid-1"]]]'


def _application():
    return {
        "appId": "233637DE",
        "sessionId": "session-1",
        "transportId": "transport-1",
        "namespaces": [{"name": YOUTUBE_NAMESPACE}],
    }


class FakeDevice:
    def __init__(self, applications=None):
        self.channels = []
        self.sent = []
        self.applications = [_application()] if applications is None else applications

    def new_channel(self, source_id, destination_id, namespace):
        channel = Channel(self, source_id, destination_id, namespace)
        self.channels.append(channel)
        return channel

    def send(self, message):
        payload = json.loads(message.payload_utf8)
        self.sent.append(SimpleNamespace(namespace=message.namespace, payload=payload))
        if message.namespace == RECEIVER_NAMESPACE and payload["type"] == "GET_STATUS":
            reply = {
                "type": "RECEIVER_STATUS",
                "requestId": payload["requestId"],
                "status": {"applications": self.applications},
            }
        elif message.namespace == YOUTUBE_NAMESPACE and payload["type"] == "getMdxSessionStatus":
            reply = {"type": "mdxSessionStatus", "data": {"screenId": "screen-1"}}
        else:
            return
        text = json.dumps(reply)
        headers = PayloadHeaders(type=reply["type"], request_id=reply.get("requestId"))
        incoming = CastMessage(
            source_id=message.destination_id,
            destination_id=message.source_id,
            namespace=message.namespace,
            payload_utf8=text,
        )
        for channel in list(self.channels):
            channel.receive_message(incoming, headers)


class FakeLounge:
    def __init__(self):
        self.posts = []

    def post(self, url, headers=None, params=None, data=None):
        self.posts.append(SimpleNamespace(url=url, headers=headers, params=params or {}, data=data))
        if url == LOUNGE_TOKEN_URL:
            body = {"screens": [{"screenId": "screen-1", "loungeToken": "token"}]}
            return SimpleNamespace(status_code=200, text=json.dumps(body), json=lambda: body)
        return SimpleNamespace(status_code=200, text=BIND_TEXT, json=lambda: {})

    def actions(self):
        return [p for p in self.posts if p.url == BIND_URL and "SID" in p.params]


@pytest.fixture
def lounge():
    fake = FakeLounge()
    with mock.patch("requests.post", side_effect=fake.post):
        yield fake


def make_controller(**kwargs):
    device = FakeDevice(**kwargs)
    receiver = ReceiverController(device, "sender-0", "receiver-0")
    return device, YoutubeController(device, "sender-0", receiver, screen_id_timeout=0.2)


def test_play_video_sets_playlist(lounge):
    _, controller = make_controller()
    controller.play_video("abc", "")
    assert controller.screen_id == "screen-1"
    (action,) = lounge.actions()
    assert "req0__sc=setPlaylist" in action.data
    assert "req0_videoId=abc" in action.data
    assert action.params["SID"] == "sid-1"
    assert action.params["gsessionid"] == "gsid-1"
    assert action.headers["X-YouTube-LoungeId-Token"] == "token"


def test_second_play_reuses_session(lounge):
    device, controller = make_controller()
    controller.play_video("abc", "")
    controller.play_video("def", "")
    requests_for_screen = [
        entry for entry in device.sent
        if entry.namespace == YOUTUBE_NAMESPACE and entry.payload["type"] == "getMdxSessionStatus"
    ]
    assert len(requests_for_screen) == 1
    assert controller.screen_id == "screen-1"
    assert "req0_videoId=def" in lounge.actions()[-1].data


def test_play_video_without_session_raises(lounge):
    _, controller = make_controller(applications=[])
    with pytest.raises(InitializationError):
        controller.play_video("abc", "")
    assert lounge.posts == []


def test_add_to_queue_sends_action(lounge):
    _, controller = make_controller()
    controller.add_to_queue("vid")
    # The action succeeds on the current session, so no screen lookup happens.
    assert controller.screen_id is None
    (action,) = lounge.actions()
    assert "req0__sc=addVideo" in action.data
    assert "req0_videoId=vid" in action.data


@pytest.mark.parametrize(
    "method, args, action",
    [
        ("play_next", ("vid",), "insertVideo"),
        ("remove_from_queue", ("vid",), "removeVideo"),
        ("clear_playlist", (), "clearPlaylist"),
    ],
)
def test_queue_actions(lounge, method, args, action):
    _, controller = make_controller()
    controller.play_video("abc", "")
    getattr(controller, method)(*args)
    assert controller.screen_id == "screen-1"
    assert f"req0__sc={action}" in lounge.actions()[-1].data