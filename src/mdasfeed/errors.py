"""
Errors raised while receiving and decoding the radar feed.

None of these are fatal: each one concerns a single frame, message or
request cycle, and the transports report them and carry on.
"""

from typing import Iterable


class FeedError(Exception):
    """Base class for all feed errors."""


class MalformedFrame(FeedError):
    """A wire frame violates the header/payload layout."""


class HeaderBoundaryNotFound(MalformedFrame):
    """No closing brace in the header window."""


class HeaderParseError(MalformedFrame):
    """Header bytes are not valid UTF-8 JSON with the expected fields."""


class UnexpectedFrameType(MalformedFrame):
    """Header type tag is not "radar_frame"."""

    def __init__(self, frame_type):
        super().__init__(f"Invalid frame type: expected 'radar_frame', got {frame_type!r}")
        self.frame_type = frame_type


class PayloadLengthMismatch(MalformedFrame):
    """Binary payload length differs from angle_count * bins_per_line."""

    def __init__(self, expected: int, actual: int):
        super().__init__(f"Binary data length mismatch: expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class MessageParseError(FeedError):
    """A push-mode text message is not JSON or not a valid packet."""


class UnrecognizedMessageShape(FeedError):
    """A push-mode text message matches no known shape."""

    def __init__(self, keys: Iterable[str]):
        self.keys = sorted(keys)
        super().__init__(f"Unrecognized message shape with keys {self.keys}")


class TransportError(FeedError):
    """Network or connection failure."""
