"""A cast device with its controllers, and discovery of devices over mDNS."""

from __future__ import annotations

import argparse
import logging
import socket
import threading
import time
from dataclasses import dataclass
from typing import Any, Iterator, Sequence

import dns.exception
import dns.message
import dns.name
import dns.rdatatype

from castv2.config import (
    CHROMECAST_SERVICE_NAME,
    DEFAULT_CHROMECAST_RECEIVER_ID,
    DEFAULT_CHROMECAST_SENDER_ID,
    DEFAULT_TIMEOUT,
    MEDIA_RECEIVER_APP_ID,
    YOUTUBE_APP_ID,
)
from castv2.connection import ConnectionController, HeartbeatController
from castv2.media_controller import MediaController
from castv2.media_types import MediaStatus
from castv2.receiver_controller import ReceiverController
from castv2.receiver_types import ReceiverStatus
from castv2.transport import Client
from castv2.youtube_controller import YoutubeController

logger = logging.getLogger(__name__)

MDNS_ADDRESS = "224.0.0.251"
MDNS_PORT = 5353
MDNS_DOMAIN = "local."
LOAD_SETTLE_DELAY = 0.5

_RECV_SIZE = 9000
_FAILURES = (OSError, LookupError, ValueError)


class Device:
    """A cast device, connected and ready to run basic commands."""

    def __init__(self, client: Any) -> None:
        self.client = client
        self._heartbeat = HeartbeatController(
            client, DEFAULT_CHROMECAST_SENDER_ID, DEFAULT_CHROMECAST_RECEIVER_ID
        )
        self._heartbeat.start()
        self._connection = ConnectionController(
            client, DEFAULT_CHROMECAST_SENDER_ID, DEFAULT_CHROMECAST_RECEIVER_ID
        )
        self._connection.connect()
        self.receiver_controller = ReceiverController(
            client, DEFAULT_CHROMECAST_SENDER_ID, DEFAULT_CHROMECAST_RECEIVER_ID
        )
        self.media_controller = MediaController(
            client, DEFAULT_CHROMECAST_SENDER_ID, self.receiver_controller
        )
        self.youtube_controller = YoutubeController(
            client, DEFAULT_CHROMECAST_SENDER_ID, self.receiver_controller
        )

    @classmethod
    def connect(cls, host: Any, port: int) -> Device:
        """Open a connection to the device at ``host``:``port``."""
        client = Client.connect(str(host), port)
        try:
            return cls(client)
        except BaseException:
            client.close()
            raise

    def close(self) -> None:
        """Stop the heartbeat and close the connection."""
        self._heartbeat.stop()
        self.client.close()

    def __enter__(self) -> Device:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def play(self) -> Any:
        """Resume playback of the current media."""
        return self.media_controller.play(DEFAULT_TIMEOUT)

    def play_media(self, url: str, mime_type: str) -> Any:
        """Launch the media receiver and play the media at ``url``."""
        self.receiver_controller.launch_application(MEDIA_RECEIVER_APP_ID, DEFAULT_TIMEOUT, False)
        return self.media_controller.load(url, mime_type, DEFAULT_TIMEOUT)

    def play_media_fix_duration(self, url: str, mime_type: str, duration: float) -> None:
        """Launch the media receiver, start loading ``url`` and wait ``duration`` seconds."""
        self.receiver_controller.launch_application(MEDIA_RECEIVER_APP_ID, DEFAULT_TIMEOUT, False)
        loader = threading.Thread(
            target=self._load_in_background,
            args=(url, mime_type),
            name="castv2-load",
            daemon=True,
        )
        loader.start()
        time.sleep(LOAD_SETTLE_DELAY + duration)

    def _load_in_background(self, url: str, mime_type: str) -> None:
        try:
            self.media_controller.load(url, mime_type, DEFAULT_TIMEOUT)
        except _FAILURES as err:
            logger.warning("Failed to load %s: %s", url, err)

    def quit_application(self, timeout: float) -> None:
        """Stop every application running on the device."""
        try:
            status = self.receiver_controller.get_status(timeout)
        except _FAILURES as err:
            logger.debug("Could not read receiver status: %s", err)
            return
        if status is None:
            return
        for application in status.applications:
            self.receiver_controller.stop_application(application.session_id, timeout)

    def play_youtube_video(self, video_id: str) -> None:
        """Launch the YouTube application and play ``video_id``."""
        self.receiver_controller.launch_application(YOUTUBE_APP_ID, DEFAULT_TIMEOUT, False)
        self.youtube_controller.play_video(video_id, "")

    def get_media_status(self, timeout: float) -> list[MediaStatus]:
        """Return the media statuses, or an empty list if they cannot be read."""
        try:
            return self.media_controller.get_status(timeout)
        except _FAILURES as err:
            logger.debug("Could not read media status: %s", err)
            return []

    def get_status(self, timeout: float) -> ReceiverStatus | None:
        """Return the receiver status, or None if it cannot be read."""
        try:
            return self.receiver_controller.get_status(timeout)
        except _FAILURES as err:
            logger.debug("Could not read receiver status: %s", err)
            return None


@dataclass(frozen=True)
class _ServiceEntry:
    name: str
    host: str
    address: str
    port: int


def _service_name(service: str) -> dns.name.Name:
    return dns.name.from_text(f"{service}.{MDNS_DOMAIN}")


def _service_entries(
    message: dns.message.Message, service: dns.name.Name, fallback_address: str
) -> Iterator[_ServiceEntry]:
    records = [*message.answer, *message.additional]
    instances = [
        rdata.target
        for rrset in records
        if rrset.rdtype == dns.rdatatype.PTR and rrset.name == service
        for rdata in rrset
        if hasattr(rdata, "target")
    ]
    services: dict[dns.name.Name, Any] = {}
    addresses: dict[dns.name.Name, str] = {}
    for rrset in records:
        for rdata in rrset:
            if rrset.rdtype == dns.rdatatype.SRV and hasattr(rdata, "port"):
                services.setdefault(rrset.name, rdata)
            elif rrset.rdtype == dns.rdatatype.A and hasattr(rdata, "address"):
                addresses.setdefault(rrset.name, rdata.address)
    for instance in instances:
        record = services.get(instance)
        if record is None:
            continue
        yield _ServiceEntry(
            name=instance.to_text(),
            host=record.target.to_text(),
            address=addresses.get(record.target, fallback_address),
            port=record.port,
        )


def _discover(service: str, timeout: float) -> Iterator[_ServiceEntry]:
    """Query the network for ``service`` and yield each instance found once."""
    qname = _service_name(service)
    query = dns.message.make_query(qname, dns.rdatatype.PTR)
    deadline = time.monotonic() + timeout
    seen: set[str] = set()
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.sendto(query.to_wire(), (MDNS_ADDRESS, MDNS_PORT))
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return
            sock.settimeout(remaining)
            try:
                data, sender = sock.recvfrom(_RECV_SIZE)
            except TimeoutError:
                return
            try:
                message = dns.message.from_wire(data)
            except dns.exception.DNSException:
                continue
            for entry in _service_entries(message, qname, sender[0]):
                if entry.name not in seen:
                    seen.add(entry.name)
                    yield entry


def find_devices(timeout: float) -> Iterator[Device]:
    """Search the local network for cast devices and yield each one connected."""
    for entry in _discover(CHROMECAST_SERVICE_NAME, timeout):
        if CHROMECAST_SERVICE_NAME not in entry.name:
            return
        try:
            device = Device.connect(entry.address, entry.port)
        except OSError as err:
            logger.warning("Failed to connect to %s: %s", entry.name, err)
            return
        yield device


def main(argv: Sequence[str] | None = None) -> int:
    """Find cast devices; play a URL on each, or print their status."""
    parser = argparse.ArgumentParser(description="Find cast devices and play media on them.")
    parser.add_argument("url", nargs="?", help="media to play on every device found")
    parser.add_argument("--mime-type", default="video/mp4", help="MIME type of the media")
    parser.add_argument("--timeout", type=float, default=5.0, help="seconds to search")
    args = parser.parse_args(argv)

    for device in find_devices(args.timeout):
        with device:
            if args.url is None:
                print(device.get_status(args.timeout))
                continue
            device.play_media(args.url, args.mime_type)
            time.sleep(5)
            device.media_controller.pause(5)
            device.quit_application(5)
    return 0