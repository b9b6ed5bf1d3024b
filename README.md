# castv2

A Python library for driving Chromecast devices over the Cast v2 protocol.
It finds devices on the local network with an mDNS query, keeps the
connection alive with heartbeats, launches receiver applications, and
controls media playback, including playlists in the YouTube application.

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Command line

The `castv2` command searches the local network for cast devices for a few
seconds and, for each device found, prints its receiver status:

```
castv2
castv2 --timeout 10
```

Given a URL, it instead plays that media on every device found, pauses it
after five seconds and then stops every running application:

```
castv2 http://media.example.com/video.mp4 --mime-type video/mp4
```

Options:

- `url` — media to play; if left out, the status is printed.
- `--mime-type` — MIME type of the media (default `video/mp4`).
- `--timeout` — seconds to search for devices (default `5.0`).

## Library use

Finding devices and playing a video:

```python
from castv2.device import find_devices

for device in find_devices(5.0):
    with device:
        device.play_media("http://media.example.com/video.mp4", "video/mp4")
        device.media_controller.pause(5.0)
        device.quit_application(5.0)
```

`find_devices` is a generator: it sends one mDNS query for
`_googlecast._tcp.local.`, yields a connected `Device` for each instance that
answers within the timeout, and stops at the first device it cannot connect to.

Connecting to a known address:

```python
from castv2.device import Device

with Device.connect("192.168.1.20", 8009) as device:
    status = device.get_status(5.0)
    if status is not None:
        for app in status.applications:
            print(app.display_name, app.session_id)
```

`Device` methods: `play`, `play_media`, `play_media_fix_duration`,
`quit_application`, `play_youtube_video`, `get_media_status` (an empty list
when the status cannot be read), `get_status` (`None` when it cannot be read)
and `close`. A device is also a context manager that closes itself.

Playing a YouTube video:

```python
device.play_youtube_video("example-video-id")
device.youtube_controller.play_next("another-video-id")
device.youtube_controller.add_to_queue("third-video-id")
```

The YouTube controller asks the receiver for its screen ID and then manages
the playlist through the YouTube lounge web API (`castv2.youtube_session`,
`castv2.youtube_requests`), so it needs internet access. `play_video` raises
`InitializationError` when no screen ID arrives in time.

Media controls are on `device.media_controller`: `load`, `get_status`,
`play`, `pause`, `stop`, `next`, `previous`, `rewind`, `skip`, `seek`,
`enable_subtitles` and `disable_subtitles`. Each takes a timeout in seconds.
`skip` seeks to five seconds before the end and raises `ValueError` if no
media duration is known yet.

### Lower-level pieces

- `castv2.transport` — `Client` (TLS connection, certificates not verified),
  `PacketStream` (4-byte big-endian length framing), `CastMessage`
  (protobuf encoding) and `Channel` with request/response matching.
- `castv2.connection` — `ConnectionController`, `HeartbeatController`
  and `DashCastController`.
- `castv2.receiver_controller` — `ReceiverController`: status, launching and
  stopping applications, reading and setting volume.
- `castv2.media_connection` — `MediaConnection`, a channel to the running
  application session for a namespace.
- `castv2.media_builders` — `GenericMediaDataBuilder` and
  `PhotoTrackMediaDataBuilder` for `MediaData` payloads with metadata.
- `castv2.media_types`, `castv2.receiver_types` — message types, plus
  `new_content_id` and `new_content_type` validation.
- `castv2.config` — namespaces, event types and application IDs.

### Errors

- `ChannelTimeoutError` (a `TimeoutError`) — a request got no reply in time.
- `LookupError` — no running application serves the requested namespace.
- `ContentIDLengthError` — a content ID is longer than 1000 bytes.
- `MimeTypeError` — a content type is not a valid media type.
- `BindResponseError` — a YouTube lounge bind response lacks session IDs.
- `ConnectionError` — `Client.connect` could not reach the device.

## Limitations

- Discovery sends a single IPv4 mDNS query; devices that do not answer it
  within the timeout are not found.
- `DashCastController` is not attached to `Device`; create it yourself from
  a `Client` once the DashCast application is running.
- The `force_launch` argument of `ReceiverController.launch_application` is
  accepted but has no effect.