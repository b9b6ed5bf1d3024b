import json
from types import SimpleNamespace

import pytest

from castv2.config import CONNECTION_NAMESPACE, MEDIA_NAMESPACE, RECEIVER_NAMESPACE
from castv2.headers import PayloadHeaders
from castv2.media_controller import MediaController
from castv2.media_types import ContentIDLengthError, MimeTypeError
from castv2.receiver_controller import ReceiverController
from castv2.transport import CastMessage, Channel

URL = "http://example.com/video.mp4"
DURATION = 120.0


def _application():
    return {
        "appId": "CC1AD845",
        "sessionId": "session-1",
        "transportId": "transport-1",
        "namespaces": [{"name": MEDIA_NAMESPACE}],
    }


def _media_status(session_id=7):
    return {
        "mediaSessionId": session_id,
        "playerState": "PLAYING",
        "media": {
            "contentId": URL,
            "contentType": "video/mp4",
            "streamType": "BUFFERED",
            "duration": DURATION,
        },
    }


class FakeDevice:
    def __init__(self, applications=None, raw_media_reply=None):
        self.channels = []
        self.sent = []
        self.applications = [_application()] if applications is None else applications
        self.raw_media_reply = raw_media_reply
        self.media_session_id = 7

    def new_channel(self, source_id, destination_id, namespace):
        channel = Channel(self, source_id, destination_id, namespace)
        self.channels.append(channel)
        return channel

    def _reply(self, namespace, payload):
        if namespace == RECEIVER_NAMESPACE and payload["type"] == "GET_STATUS":
            return {"type": "RECEIVER_STATUS", "status": {"applications": self.applications}}
        if namespace == MEDIA_NAMESPACE:
            return {"type": "MEDIA_STATUS", "status": [_media_status(self.media_session_id)]}
        return None

    def deliver(self, source, destination, namespace, text, headers):
        message = CastMessage(
            source_id=source, destination_id=destination, namespace=namespace, payload_utf8=text
        )
        for channel in list(self.channels):
            channel.receive_message(message, headers)

    def send(self, message):
        payload = json.loads(message.payload_utf8)
        self.sent.append(
            SimpleNamespace(
                namespace=message.namespace, destination=message.destination_id, payload=payload
            )
        )
        request_id = payload.get("requestId")
        if message.namespace == MEDIA_NAMESPACE and self.raw_media_reply is not None:
            headers = PayloadHeaders(type="MEDIA_STATUS", request_id=request_id)
            self.deliver(
                message.destination_id, message.source_id, message.namespace,
                self.raw_media_reply, headers,
            )
            return
        reply = self._reply(message.namespace, payload)
        if reply is None:
            return
        if request_id is not None:
            reply["requestId"] = request_id
        headers = PayloadHeaders(type=reply["type"], request_id=reply.get("requestId"))
        self.deliver(
            message.destination_id, message.source_id, message.namespace, json.dumps(reply), headers
        )

    def sent_of(self, namespace, kind):
        return [entry for entry in self.sent if entry.namespace == namespace and entry.payload["type"] == kind]


def make_controller(**kwargs):
    device = FakeDevice(**kwargs)
    receiver = ReceiverController(device, "sender-0", "receiver-0")
    return device, MediaController(device, "sender-0", receiver)


def test_get_status_reports_media_session():
    _, controller = make_controller()
    statuses = controller.get_status(1.0)
    assert statuses[0].media_session_id == 7
    assert statuses[0].media.duration == DURATION
    assert controller.media_session_id == 7


def test_requests_go_to_application_transport():
    device, controller = make_controller()
    controller.get_status(1.0)
    media = [entry for entry in device.sent if entry.namespace == MEDIA_NAMESPACE]
    assert media and all(entry.destination == "transport-1" for entry in media)
    connects = device.sent_of(CONNECTION_NAMESPACE, "CONNECT")
    assert [entry.destination for entry in connects] == ["transport-1"]


def test_load_sends_media_description():
    device, controller = make_controller()
    controller.load(URL, "video/mp4", 1.0)
    (load,) = device.sent_of(MEDIA_NAMESPACE, "LOAD")
    assert load.payload["media"]["contentId"] == URL
    assert load.payload["media"]["contentType"] == "video/mp4"
    assert load.payload["media"]["streamType"] == "BUFFERED"
    assert load.payload["autoplay"] is True


def test_load_rejects_bad_content_type():
    device, controller = make_controller()
    with pytest.raises(MimeTypeError):
        controller.load(URL, "video//mp4", 1.0)
    assert device.sent_of(MEDIA_NAMESPACE, "LOAD") == []


def test_load_rejects_long_content_id():
    _, controller = make_controller()
    with pytest.raises(ContentIDLengthError):
        controller.load("a" * 1001, "video/mp4", 1.0)


@pytest.mark.parametrize(
    "method, kind",
    [("play", "PLAY"), ("pause", "PAUSE"), ("stop", "STOP"), ("next", "NEXT"), ("previous", "PREVIOUS")],
)
def test_commands_use_refreshed_session_id(method, kind):
    device, controller = make_controller()
    getattr(controller, method)(1.0)
    sent = device.sent_of(MEDIA_NAMESPACE, kind)
    assert [entry.payload["mediaSessionId"] for entry in sent] == [0, 7]


def test_skip_without_media_raises():
    _, controller = make_controller()
    with pytest.raises(ValueError):
        controller.skip(1.0)


def test_skip_seeks_near_end():
    device, controller = make_controller()
    controller.pause(1.0)
    controller.skip(1.0)
    (seek,) = device.sent_of(MEDIA_NAMESPACE, "SEEK")
    assert seek.payload["currentTime"] == 115.0
    assert seek.payload["resumeState"] == "PLAYBACK_START"


def test_rewind_seeks_to_start():
    device, controller = make_controller()
    controller.rewind(1.0)
    (seek,) = device.sent_of(MEDIA_NAMESPACE, "SEEK")
    assert seek.payload["currentTime"] == 0


def test_subtitles_toggle_tracks():
    device, controller = make_controller()
    controller.enable_subtitles(1.0)
    controller.disable_subtitles(1.0)
    sent = device.sent_of(MEDIA_NAMESPACE, "EDIT_TRACKS_INFO")
    assert [entry.payload["activeTrackIds"] for entry in sent] == [[1], []]
    assert all(entry.payload["mediaSessionId"] == 7 for entry in sent)


def test_missing_application_session_raises():
    _, controller = make_controller(applications=[])
    with pytest.raises(LookupError):
        controller.get_status(1.0)


def test_malformed_status_raises():
    _, controller = make_controller(raw_media_reply="not json")
    with pytest.raises(ValueError):
        controller.get_status(1.0)


def test_unsolicited_status_updates_session():
    device, controller = make_controller()
    controller.get_status(1.0)
    text = json.dumps({"type": "MEDIA_STATUS", "status": [_media_status(9)]})
    device.deliver(
        "transport-1", "sender-0", MEDIA_NAMESPACE, text, PayloadHeaders(type="MEDIA_STATUS")
    )
    assert controller.media_session_id == 9
    assert controller.incoming.get_nowait()[0].media_session_id == 9