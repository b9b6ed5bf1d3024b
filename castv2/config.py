"""Protocol constants shared across the cast controllers."""

CHROMECAST_SERVICE_NAME = "_googlecast._tcp"

DEFAULT_CHROMECAST_RECEIVER_ID = "receiver-0"
DEFAULT_CHROMECAST_SENDER_ID = "sender-0"

DEFAULT_TIMEOUT = 10.0

# Application IDs of well-known receiver applications.
MEDIA_RECEIVER_APP_ID = "CC1AD845"
YOUTUBE_APP_ID = "233637DE"
SPOTIFY_APP_ID = "CC32E753"
# The image slideshow shown when nothing else is running.
BACKDROP_APP_ID = "E8C28D3C"

# Channel namespaces.
RECEIVER_NAMESPACE = "urn:x-cast:com.google.cast.receiver"
MEDIA_NAMESPACE = "urn:x-cast:com.google.cast.media"
HEARTBEAT_NAMESPACE = "urn:x-cast:com.google.cast.tp.heartbeat"
CONNECTION_NAMESPACE = "urn:x-cast:com.google.cast.tp.connection"
DASHCAST_NAMESPACE = "urn:x-cast:com.madmod.dashcast"
YOUTUBE_NAMESPACE = "urn:x-cast:com.google.youtube.mdx"

# Receiver event types.
EVENT_GET_STATUS = "GET_STATUS"
EVENT_SET_VOLUME = "SET_VOLUME"
EVENT_RECEIVER_STATUS = "RECEIVER_STATUS"
EVENT_LAUNCH = "LAUNCH"
EVENT_STOP = "STOP"
EVENT_LAUNCH_ERROR = "LAUNCH_ERROR"

# Heartbeat event types.
EVENT_PING = "PING"
EVENT_PONG = "PONG"

# Media event types.
EVENT_LOAD = "LOAD"

# Connection event types.
EVENT_CONNECT = "CONNECT"
EVENT_CLOSE = "CLOSE"