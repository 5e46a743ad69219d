"""Configuration for the radar feed."""

import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_FEED_URL = "http://localhost:8080/api/radar/frame"
FEED_URL_ENV = "MDAS_FEED_URL"


@dataclass
class FeedConfig:
    """Configuration for a radar feed monitor."""

    mode: str = "pull"                  # "pull" (periodic request) or "push" (WebSocket)
    url: str = DEFAULT_FEED_URL
    poll_interval_s: float = 1.0        # Delay after each completed pull cycle
    request_timeout_s: float = 10.0     # Per-request HTTP timeout
    secure_context: bool = False        # Hosting context is secure (upgrade ws:// to wss://)

    # Detection
    threshold: int = 100                # Bins must exceed this intensity (0-255)
    merge_adjacent: bool = False        # Collapse runs of adjacent bins into one target

    # Persistence rendering
    persistence_sweeps: int = 3         # Past sweeps kept in the history buffer
    angle_count: int = 3600             # Lines per sweep (0.1 degree resolution)

    def __post_init__(self):
        if self.mode not in ("pull", "push"):
            raise ValueError(f"Unknown feed mode: {self.mode}. Available: ['pull', 'push']")
        if not 0 <= self.threshold <= 255:
            raise ValueError(f"threshold must be in 0-255, got {self.threshold}")
        if self.poll_interval_s < 0:
            raise ValueError(f"poll_interval_s must not be negative, got {self.poll_interval_s}")
        if self.persistence_sweeps < 1 or self.angle_count < 1:
            raise ValueError("persistence_sweeps and angle_count must be at least 1")

    @classmethod
    def from_args(cls, args, url: Optional[str] = None) -> "FeedConfig":
        """
        Build a config from the server's argparse namespace.

        The URL falls back to MDAS_FEED_URL, then the default.
        """
        return cls(
            mode=args.mode,
            url=url or args.url or os.environ.get(FEED_URL_ENV) or DEFAULT_FEED_URL,
            poll_interval_s=args.interval,
            request_timeout_s=args.timeout,
            secure_context=args.secure_context,
            threshold=args.threshold,
            merge_adjacent=args.merge_adjacent,
            persistence_sweeps=args.persistence,
            angle_count=args.angle_count,
        )
