"""
Feed transports.

Two interchangeable ways to receive the radar feed:

- PollingTransport: periodic HTTP GET of a whole frame (pull)
- SocketTransport: persistent WebSocket carrying frames or single-beam
  JSON updates (push)

Usage:
    from mdasfeed.transport import PollingTransport

    session = PollingTransport(url, poll_interval=1.0).start(on_packet, on_error)
    ...
    session.stop()
"""

from .base import FeedSession, Transport
from .factory import create_transport
from .pull import PollingTransport
from .push import SocketTransport
from .urls import normalize_socket_url

__all__ = [
    "FeedSession",
    "Transport",
    "PollingTransport",
    "SocketTransport",
    "create_transport",
    "normalize_socket_url",
]
