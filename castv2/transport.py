"""Framed, protobuf-encoded messaging with a cast device."""

from __future__ import annotations

import json
import logging
import queue
import socket
import ssl
import struct
import threading
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, BinaryIO, Callable

from castv2.counter import Counter
from castv2.headers import PayloadHeaders

logger = logging.getLogger(__name__)

_VARINT = 0
_FIXED64 = 1
_LENGTH_DELIMITED = 2
_FIXED32 = 5


class ProtocolVersion(IntEnum):
    CASTV2_1_0 = 0


class PayloadType(IntEnum):
    STRING = 0
    BINARY = 1


class ChannelTimeoutError(TimeoutError):
    """No reply arrived on a channel in time."""


def _encode_varint(value: int) -> bytes:
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _read_varint(data: bytes, pos: int) -> tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if pos >= len(data):
            raise ValueError("truncated varint")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7
        if shift >= 64:
            raise ValueError("varint too long")


def _key(number: int, wire_type: int) -> bytes:
    return _encode_varint(number << 3 | wire_type)


def _bytes_field(number: int, value: bytes) -> bytes:
    return _key(number, _LENGTH_DELIMITED) + _encode_varint(len(value)) + value


_VARINT_FIELDS = {1: "protocol_version", 5: "payload_type"}
_STRING_FIELDS = {2: "source_id", 3: "destination_id", 4: "namespace", 6: "payload_utf8"}
_BYTES_FIELDS = {7: "payload_binary"}
_REQUIRED = (1, 2, 3, 4, 5)


@dataclass
class CastMessage:
    """The envelope of every message exchanged with a cast device."""

    protocol_version: int = ProtocolVersion.CASTV2_1_0
    source_id: str = ""
    destination_id: str = ""
    namespace: str = ""
    payload_type: int = PayloadType.STRING
    payload_utf8: str | None = None
    payload_binary: bytes | None = None

    def encode(self) -> bytes:
        """Serialise the message in protobuf wire format."""
        parts = [
            _key(1, _VARINT) + _encode_varint(int(self.protocol_version)),
            _bytes_field(2, self.source_id.encode("utf-8")),
            _bytes_field(3, self.destination_id.encode("utf-8")),
            _bytes_field(4, self.namespace.encode("utf-8")),
            _key(5, _VARINT) + _encode_varint(int(self.payload_type)),
        ]
        if self.payload_utf8 is not None:
            parts.append(_bytes_field(6, self.payload_utf8.encode("utf-8")))
        if self.payload_binary is not None:
            parts.append(_bytes_field(7, bytes(self.payload_binary)))
        return b"".join(parts)

    @classmethod
    def decode(cls, data: bytes) -> CastMessage:
        """Parse a message from protobuf wire format; raise ValueError if malformed."""
        values: dict[int, Any] = {}
        pos = 0
        while pos < len(data):
            key, pos = _read_varint(data, pos)
            number, wire_type = key >> 3, key & 7
            if wire_type == _VARINT:
                value, pos = _read_varint(data, pos)
            elif wire_type == _LENGTH_DELIMITED:
                length, pos = _read_varint(data, pos)
                end = pos + length
                if end > len(data):
                    raise ValueError("truncated length-delimited field")
                value, pos = bytes(data[pos:end]), end
            elif wire_type in (_FIXED64, _FIXED32):
                end = pos + (8 if wire_type == _FIXED64 else 4)
                if end > len(data):
                    raise ValueError("truncated fixed-width field")
                value, pos = None, end
            else:
                raise ValueError(f"unsupported wire type {wire_type}")

            expected = _VARINT if number in _VARINT_FIELDS else _LENGTH_DELIMITED
            known = number in _VARINT_FIELDS or number in _STRING_FIELDS or number in _BYTES_FIELDS
            if known:
                if wire_type != expected:
                    raise ValueError(f"field {number} has wrong wire type {wire_type}")
                values[number] = value

        missing = [number for number in _REQUIRED if number not in values]
        if missing:
            raise ValueError(f"missing required fields: {missing}")

        kwargs: dict[str, Any] = {}
        for number, value in values.items():
            if number in _VARINT_FIELDS:
                kwargs[_VARINT_FIELDS[number]] = value
            elif number in _STRING_FIELDS:
                kwargs[_STRING_FIELDS[number]] = value.decode("utf-8")
            else:
                kwargs[_BYTES_FIELDS[number]] = value
        return cls(**kwargs)


class PacketStream:
    """Reads and writes packets prefixed by a 4-byte big-endian length."""

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream
        self._write_lock = threading.Lock()

    def _read_exact(self, size: int) -> bytes:
        chunks: list[bytes] = []
        remaining = size
        while remaining:
            chunk = self._stream.read(remaining)
            if not chunk:
                raise EOFError(f"stream ended with {remaining} of {size} bytes unread")
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)

    def read(self) -> bytes:
        """Return the next non-empty packet; raise EOFError at end of stream."""
        while True:
            (length,) = struct.unpack(">I", self._read_exact(4))
            if length:
                return self._read_exact(length)

    def write(self, data: bytes) -> int:
        """Write one packet and return the number of payload bytes."""
        frame = memoryview(struct.pack(">I", len(data)) + bytes(data))
        with self._write_lock:
            written = 0
            while written < len(frame):
                count = self._stream.write(frame[written:])
                if not count:
                    raise OSError(f"failed to write packet of length {len(data)}")
                written += count
            flush = getattr(self._stream, "flush", None)
            if flush is not None:
                flush()
        return len(data)


Listener = Callable[[CastMessage], None]


class Client:
    """A connection to a device that routes incoming messages to channels."""

    def __init__(self, stream: BinaryIO, sock: socket.socket | None = None) -> None:
        self._stream = stream
        self._sock = sock
        self._packets = PacketStream(stream)
        self._channels: list[Channel] = []
        self._lock = threading.Lock()
        self._reader = threading.Thread(target=self._read_loop, name="castv2-reader", daemon=True)
        self._reader.start()

    @classmethod
    def connect(cls, host: Any, port: int) -> Client:
        """Open a TLS connection to a device; certificates are not verified."""
        context = ssl.SSLContext(ssl.PROTOCOL_TLS_CLIENT)
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
        try:
            raw = socket.create_connection((str(host), port))
            sock = context.wrap_socket(raw)
        except OSError as err:
            raise ConnectionError(f"Failed to connect to Chromecast. Error:{err}") from err
        return cls(sock.makefile("rwb", buffering=0), sock)

    def _read_loop(self) -> None:
        while True:
            try:
                packet = self._packets.read()
            except (EOFError, OSError, ValueError) as err:
                logger.debug("Stopped reading packets: %s", err)
                return
            self._dispatch(packet)

    def _dispatch(self, packet: bytes) -> None:
        try:
            message = CastMessage.decode(packet)
        except ValueError:
            return
        if message.payload_utf8 is None:
            return
        try:
            data = json.loads(message.payload_utf8)
        except ValueError:
            return
        if not isinstance(data, dict):
            return
        kind = data.get("type", "")
        request_id = data.get("requestId")
        if not isinstance(kind, str):
            return
        if request_id is not None and (not isinstance(request_id, int) or isinstance(request_id, bool)):
            return
        headers = PayloadHeaders(type=kind, request_id=request_id)
        with self._lock:
            channels = list(self._channels)
        for channel in channels:
            try:
                channel.receive_message(message, headers)
            except Exception:
                logger.exception("Listener failed on %s", channel.namespace)

    def new_channel(self, source_id: str, destination_id: str, namespace: str) -> Channel:
        """Create a channel towards ``destination_id`` in ``namespace``."""
        channel = Channel(self, source_id, destination_id, namespace)
        with self._lock:
            self._channels.append(channel)
        return channel

    def send(self, message: CastMessage) -> None:
        """Send a message to the device."""
        self._packets.write(message.encode())

    def close(self) -> None:
        """Close the connection to the device."""
        if self._sock is not None:
            try:
                self._sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
        try:
            self._stream.close()
        except OSError:
            pass
        if self._sock is not None:
            self._sock.close()


def _payload_json(payload: Any) -> str:
    body = payload.to_payload() if hasattr(payload, "to_payload") else payload
    return json.dumps(body, separators=(",", ":"))


class Channel:
    """A virtual connection between two endpoints in one namespace."""

    def __init__(self, client: Any, source_id: str, destination_id: str, namespace: str) -> None:
        self.client = client
        self.source_id = source_id
        self.destination_id = destination_id
        self.namespace = namespace
        self._counter = Counter()
        self._in_flight: dict[int, queue.Queue[CastMessage]] = {}
        self._listeners: list[tuple[str, Listener]] = []
        self._lock = threading.Lock()

    def receive_message(self, message: CastMessage, headers: PayloadHeaders) -> None:
        """Deliver a reply to its waiting request, or a message to its listeners."""
        broadcast = message.destination_id == "*"
        if not broadcast and (
            message.source_id != self.destination_id
            or message.destination_id != self.source_id
            or message.namespace != self.namespace
        ):
            return

        if not broadcast and headers.request_id is not None:
            with self._lock:
                waiting = self._in_flight.pop(headers.request_id, None)
            if waiting is not None:
                waiting.put(message)
            return

        if not headers.type:
            return

        with self._lock:
            listeners = list(self._listeners)
        for response_type, callback in listeners:
            if response_type == headers.type:
                callback(message)

    def on_message(self, response_type: str, callback: Listener) -> None:
        """Call ``callback`` for each unsolicited message of ``response_type``."""
        with self._lock:
            self._listeners.append((response_type, callback))

    def send(self, payload: Any) -> None:
        """Send a payload without waiting for a reply."""
        message = CastMessage(
            source_id=self.source_id,
            destination_id=self.destination_id,
            namespace=self.namespace,
            payload_type=PayloadType.STRING,
            payload_utf8=_payload_json(payload),
        )
        self.client.send(message)

    def request(self, payload: PayloadHeaders, timeout: float) -> CastMessage:
        """Send a payload with a fresh request ID and return the reply."""
        request_id = self._counter.get_and_increment()
        payload.request_id = request_id
        reply: queue.Queue[CastMessage] = queue.Queue(maxsize=1)
        with self._lock:
            self._in_flight[request_id] = reply
        try:
            self.send(payload)
        except BaseException:
            with self._lock:
                self._in_flight.pop(request_id, None)
            raise
        try:
            return reply.get(timeout=max(timeout, 0))
        except queue.Empty:
            with self._lock:
                self._in_flight.pop(request_id, None)
            raise ChannelTimeoutError(
                f"Call to cast channel {self.destination_id} - "
                f"timed out after {int(timeout)} seconds"
            ) from None