"""
MDAS radar feed ingestion.

Receives a continuous stream of radar sweeps, decodes the hybrid
JSON/binary wire frame, and extracts point targets for display.

Usage:
    from mdasfeed import FeedConfig, RadarMonitor

    monitor = RadarMonitor(FeedConfig(url="http://radar.local/api/radar/frame"))
    monitor.start(update_callback=on_update)

    # Or run the display relay:
    # mdasfeed-server --url http://radar.local/api/radar/frame
"""

__version__ = "0.1.0"

from .types import FrameHeader, Line, Packet, Target, SweepUpdate

from .errors import (
    FeedError,
    MalformedFrame,
    HeaderBoundaryNotFound,
    HeaderParseError,
    UnexpectedFrameType,
    PayloadLengthMismatch,
    MessageParseError,
    UnrecognizedMessageShape,
    TransportError,
)

from .frame import decode_frame, encode_frame
from .geometry import polar_to_cartesian, bearing_from_cartesian
from .detection import detect_targets, detect_packet_targets, merge_adjacent_targets
from .history import SweepHistory
from .config import FeedConfig
from .monitor import RadarMonitor

__all__ = [
    # Types
    "FrameHeader",
    "Line",
    "Packet",
    "Target",
    "SweepUpdate",
    # Errors
    "FeedError",
    "MalformedFrame",
    "HeaderBoundaryNotFound",
    "HeaderParseError",
    "UnexpectedFrameType",
    "PayloadLengthMismatch",
    "MessageParseError",
    "UnrecognizedMessageShape",
    "TransportError",
    # Decoding and detection
    "decode_frame",
    "encode_frame",
    "polar_to_cartesian",
    "bearing_from_cartesian",
    "detect_targets",
    "detect_packet_targets",
    "merge_adjacent_targets",
    "SweepHistory",
    # Monitor
    "FeedConfig",
    "RadarMonitor",
]
