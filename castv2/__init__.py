"""Control Chromecast devices over the Cast v2 protocol: discovery, receiver and media control, YouTube playlists."""

__version__ = "0.1.0"