import json

import pytest

from castv2.config import MEDIA_NAMESPACE, RECEIVER_NAMESPACE
from castv2.headers import PayloadHeaders
from castv2.receiver_controller import ReceiverController
from castv2.receiver_types import Volume
from castv2.transport import CastMessage, Channel, ChannelTimeoutError

STATUS = {
    "applications": [
        {
            "appId": "CC1AD845",
            "sessionId": "session-a",
            "transportId": "transport-a",
            "namespaces": [{"name": MEDIA_NAMESPACE}],
        }
    ],
    "volume": {"level": 0.25, "muted": False},
}


class FakeClient:
    def __init__(self, responder=None):
        self.channels = []
        self.sent = []
        self.responder = responder

    def new_channel(self, source_id, destination_id, namespace):
        channel = Channel(self, source_id, destination_id, namespace)
        self.channels.append(channel)
        return channel

    def send(self, message):
        self.sent.append(message)
        if self.responder is not None:
            for reply in self.responder(message) or []:
                self.deliver(reply)

    def deliver(self, message):
        data = json.loads(message.payload_utf8)
        headers = PayloadHeaders(type=data.get("type", ""), request_id=data.get("requestId"))
        for channel in list(self.channels):
            channel.receive_message(message, headers)


def reply_to(message, body):
    request_id = json.loads(message.payload_utf8).get("requestId")
    return CastMessage(
        source_id=message.destination_id,
        destination_id=message.source_id,
        namespace=message.namespace,
        payload_utf8=json.dumps(dict(body, requestId=request_id)),
    )


def status_responder(message):
    return [reply_to(message, {"type": "RECEIVER_STATUS", "status": STATUS})]


def make(responder=None):
    client = FakeClient(responder)
    return client, ReceiverController(client, "sender-0", "receiver-0")


def test_get_status_parses_reply():
    client, controller = make(status_responder)
    status = controller.get_status(1)
    assert client.sent[0].namespace == RECEIVER_NAMESPACE
    assert json.loads(client.sent[0].payload_utf8)["type"] == "GET_STATUS"
    assert [app.session_id for app in status.applications] == ["session-a"]
    assert status.applications[0].transport_id == "transport-a"
    assert status.get_session_by_namespace(MEDIA_NAMESPACE).app_id == "CC1AD845"


def test_get_status_publishes_latest_status():
    _, controller = make(status_responder)
    controller.get_status(1)
    status = controller.get_status(1)
    assert controller.incoming.get_nowait() == status
    assert controller.incoming.empty()


def test_get_status_times_out_without_reply():
    _, controller = make()
    with pytest.raises(ChannelTimeoutError):
        controller.get_status(0.05)


def test_get_status_rejects_malformed_payload():
    def responder(message):
        reply = reply_to(message, {"type": "RECEIVER_STATUS"})
        reply.payload_utf8 = reply.payload_utf8[:-1] + ',"status": 5}'
        return [reply]

    _, controller = make(responder)
    with pytest.raises((ValueError, AttributeError)):
        controller.get_status(1)


def test_get_volume_returns_status_volume():
    _, controller = make(status_responder)
    volume = controller.get_volume(1)
    assert volume.level == 0.25
    assert volume.muted is False


def test_set_volume_sends_volume_and_returns_reply():
    def responder(message):
        return [reply_to(message, {"type": "RECEIVER_STATUS", "status": STATUS})]

    client, controller = make(responder)
    reply = controller.set_volume(Volume(level=0.5, muted=True), 1)
    sent = json.loads(client.sent[0].payload_utf8)
    assert sent["type"] == "SET_VOLUME"
    assert sent["volume"] == {"level": 0.5, "muted": True}
    assert json.loads(reply.payload_utf8)["requestId"] == sent["requestId"]


def test_launch_application_sends_app_id():
    client, controller = make()
    assert controller.launch_application("CC1AD845", 0.05, False) is None
    sent = json.loads(client.sent[0].payload_utf8)
    assert sent["type"] == "LAUNCH"
    assert sent["appId"] == "CC1AD845"


def test_stop_application_sends_session_id():
    client, controller = make()
    controller.stop_application("session-a", 0.05)
    sent = json.loads(client.sent[0].payload_utf8)
    assert sent["type"] == "STOP"
    assert sent["sessionID"] == "session-a"


def test_unsolicited_status_reaches_incoming():
    client, controller = make()
    client.deliver(
        CastMessage(
            source_id="receiver-0",
            destination_id="*",
            namespace=RECEIVER_NAMESPACE,
            payload_utf8=json.dumps({"type": "RECEIVER_STATUS", "status": STATUS}),
        )
    )
    status = controller.incoming.get_nowait()
    assert status.applications[0].session_id == "session-a"