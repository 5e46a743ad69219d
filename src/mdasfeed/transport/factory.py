"""Transport selection from configuration."""

from ..config import FeedConfig
from .base import Transport
from .pull import PollingTransport
from .push import SocketTransport


def create_transport(config: FeedConfig) -> Transport:
    """
    Factory function to create the transport for a feed config.

    Args:
        config: Feed configuration; config.mode is "pull" or "push"

    Returns:
        Configured Transport instance
    """
    if config.mode == "pull":
        return PollingTransport(
            config.url,
            poll_interval=config.poll_interval_s,
            request_timeout=config.request_timeout_s,
        )
    if config.mode == "push":
        return SocketTransport(config.url, secure_context=config.secure_context)

    raise ValueError(f"Unknown feed mode: {config.mode}. Available: ['pull', 'push']")
