import json

import pytest

from castv2.config import CONNECTION_NAMESPACE, MEDIA_NAMESPACE, RECEIVER_NAMESPACE
from castv2.headers import PayloadHeaders
from castv2.media_connection import MediaConnection
from castv2.receiver_controller import ReceiverController
from castv2.transport import CastMessage, Channel


class FakeClient:
    def __init__(self, applications):
        self.channels = []
        self.sent = []
        self.applications = applications

    def new_channel(self, source_id, destination_id, namespace):
        channel = Channel(self, source_id, destination_id, namespace)
        self.channels.append(channel)
        return channel

    def send(self, message):
        self.sent.append(message)
        data = json.loads(message.payload_utf8)
        if "requestId" not in data:
            return
        if message.namespace == RECEIVER_NAMESPACE:
            body = {"type": "RECEIVER_STATUS", "status": {"applications": self.applications}}
        else:
            body = {"type": "MEDIA_STATUS", "status": []}
        body["requestId"] = data["requestId"]
        self.deliver(
            CastMessage(
                source_id=message.destination_id,
                destination_id=message.source_id,
                namespace=message.namespace,
                payload_utf8=json.dumps(body),
            )
        )

    def deliver(self, message):
        data = json.loads(message.payload_utf8)
        headers = PayloadHeaders(type=data.get("type", ""), request_id=data.get("requestId"))
        for channel in list(self.channels):
            channel.receive_message(message, headers)


MEDIA_APP = {
    "appId": "CC1AD845",
    "sessionId": "session-a",
    "transportId": "web-5",
    "namespaces": [{"name": MEDIA_NAMESPACE}],
}


def make(applications):
    client = FakeClient(applications)
    receiver = ReceiverController(client, "sender-0", "receiver-0")
    return client, MediaConnection(client, receiver, MEDIA_NAMESPACE, "sender-0")


def sent_on(client, namespace):
    return [m for m in client.sent if m.namespace == namespace]


def test_request_connects_to_session_transport():
    client, connection = make([MEDIA_APP])
    reply = connection.request(PayloadHeaders(type="GET_STATUS"), 1)
    assert reply.source_id == "web-5"
    assert json.loads(reply.payload_utf8)["type"] == "MEDIA_STATUS"
    connects = sent_on(client, CONNECTION_NAMESPACE)
    assert [(m.destination_id, json.loads(m.payload_utf8)) for m in connects] == [
        ("web-5", {"type": "CONNECT"})
    ]
    media = sent_on(client, MEDIA_NAMESPACE)
    assert [m.destination_id for m in media] == ["web-5"]
    assert connection.session_id == "session-a"


def test_second_request_reuses_connection():
    client, connection = make([MEDIA_APP])
    connection.request(PayloadHeaders(type="GET_STATUS"), 1)
    connection.request(PayloadHeaders(type="GET_STATUS"), 1)
    assert len(sent_on(client, CONNECTION_NAMESPACE)) == 1
    assert len(sent_on(client, MEDIA_NAMESPACE)) == 2


def test_request_without_session_raises():
    client, connection = make([])
    with pytest.raises(LookupError, match="No session by that name"):
        connection.request(PayloadHeaders(type="GET_STATUS"), 1)
    assert sent_on(client, MEDIA_NAMESPACE) == []


def test_listeners_registered_before_setup_receive_messages():
    client, connection = make([MEDIA_APP])
    received = []
    connection.on_message("MEDIA_STATUS", received.append)
    connection.request(PayloadHeaders(type="GET_STATUS"), 1)
    assert received == []
    update = CastMessage(
        source_id="web-5",
        destination_id="*",
        namespace=MEDIA_NAMESPACE,
        payload_utf8=json.dumps({"type": "MEDIA_STATUS", "status": []}),
    )
    client.deliver(update)
    assert received == [update]


def test_terminate_closes_established_connection():
    client, connection = make([MEDIA_APP])
    connection.request(PayloadHeaders(type="GET_STATUS"), 1)
    connection.terminate(1)
    last = sent_on(client, CONNECTION_NAMESPACE)[-1]
    assert json.loads(last.payload_utf8) == {"type": "CLOSE"}
    assert last.destination_id == "web-5"


def test_terminate_before_setup_sends_nothing():
    client, connection = make([MEDIA_APP])
    connection.terminate(1)
    assert client.sent == []