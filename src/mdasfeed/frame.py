"""
Wire frame demultiplexer.

A frame is a UTF-8 JSON header immediately followed, with no delimiter,
by the raw intensity payload:

    {"type":"radar_frame","timestamp_ms":...,"bins_per_line":2048,
     "angle_count":3600,"max_range_meters":24000}<angle_count*bins_per_line bytes>

The payload is angle-major: all bins for angle 0, then all bins for
angle 1, and so on. Each byte is one intensity sample (0-255).

The header/payload boundary is the LAST '}' within the first 1000 bytes.
This only works while the header stays a flat JSON object; a '}' in the
leading payload bytes inside that window will be picked instead. Kept
as-is for compatibility with the sensor feed.
"""

import json
import logging
import math
from datetime import datetime, timezone
from typing import Tuple, Union

import numpy as np

from .errors import (
    HeaderBoundaryNotFound,
    HeaderParseError,
    PayloadLengthMismatch,
    UnexpectedFrameType,
)
from .types import FRAME_TYPE, FrameHeader, Line, Packet

logger = logging.getLogger("mdasfeed.frame")

HEADER_WINDOW = 1000
CLOSING_BRACE = b"}"

BytesLike = Union[bytes, bytearray, memoryview]


def find_header_end(buffer: BytesLike) -> int:
    """
    Locate the header's closing brace.

    Returns:
        Offset of the last '}' in the first HEADER_WINDOW bytes

    Raises:
        HeaderBoundaryNotFound: If the window has no '}'
    """
    window = bytes(buffer[:HEADER_WINDOW])
    end = window.rfind(CLOSING_BRACE)
    if end == -1:
        raise HeaderBoundaryNotFound(
            f"Invalid frame: JSON header not found in first {HEADER_WINDOW} bytes"
        )
    return end


def _require_int(data: dict, key: str, positive: bool = True) -> int:
    value = data.get(key)
    if isinstance(value, bool):
        raise HeaderParseError(f"Header field {key!r} must be an integer, got {value!r}")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        raise HeaderParseError(f"Header field {key!r} must be an integer, got {value!r}")
    if positive and value <= 0:
        raise HeaderParseError(f"Header field {key!r} must be positive, got {value}")
    return value


def _require_number(data: dict, key: str) -> float:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise HeaderParseError(f"Header field {key!r} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise HeaderParseError(f"Header field {key!r} must be finite, got {value}")
    if value <= 0:
        raise HeaderParseError(f"Header field {key!r} must be positive, got {value}")
    return float(value)


def parse_header(header_bytes: BytesLike) -> FrameHeader:
    """
    Parse the JSON header of a frame.

    Args:
        header_bytes: Header bytes up to and including the closing brace

    Returns:
        FrameHeader

    Raises:
        HeaderParseError: Bad UTF-8, bad JSON, or missing/mistyped fields
        UnexpectedFrameType: Type tag is not "radar_frame"
    """
    try:
        data = json.loads(bytes(header_bytes).decode("utf-8"))
    except (ValueError, RecursionError) as e:
        raise HeaderParseError(f"Failed to parse frame header: {e}") from e

    if not isinstance(data, dict):
        raise HeaderParseError(f"Frame header must be a JSON object, got {type(data).__name__}")

    frame_type = data.get("type")
    if not isinstance(frame_type, str):
        raise HeaderParseError(f"Header field 'type' must be a string, got {frame_type!r}")
    if frame_type != FRAME_TYPE:
        raise UnexpectedFrameType(frame_type)

    return FrameHeader(
        frame_type=frame_type,
        timestamp_ms=_require_int(data, "timestamp_ms", positive=False),
        bins_per_line=_require_int(data, "bins_per_line"),
        angle_count=_require_int(data, "angle_count"),
        max_range_meters=_require_number(data, "max_range_meters"),
    )


def split_frame(buffer: BytesLike) -> Tuple[FrameHeader, bytes]:
    """
    Split a raw frame into its parsed header and payload bytes.

    Raises:
        MalformedFrame: Any of its subclasses, see parse_header
        PayloadLengthMismatch: Payload is not angle_count * bins_per_line bytes
    """
    end = find_header_end(buffer)
    header = parse_header(buffer[:end + 1])

    payload = bytes(buffer[end + 1:])
    if len(payload) != header.payload_length:
        raise PayloadLengthMismatch(header.payload_length, len(payload))

    return header, payload


def angle_for_index(angle_index: int) -> float:
    """Sweep angle in degrees for an angle index (0.1 degree resolution)."""
    return (angle_index / 10) % 360


def timestamp_from_ms(timestamp_ms: int) -> datetime:
    """Convert Unix epoch milliseconds to an aware UTC datetime."""
    try:
        return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise HeaderParseError(f"Invalid timestamp_ms {timestamp_ms}: {e}") from e


def build_packet(header: FrameHeader, payload: BytesLike) -> Packet:
    """
    Assemble a packet from a parsed header and its binary payload.

    Args:
        header: Parsed frame header
        payload: Exactly header.payload_length bytes, angle-major

    Returns:
        Packet with one line per angle index
    """
    if len(payload) != header.payload_length:
        raise PayloadLengthMismatch(header.payload_length, len(payload))

    matrix = np.frombuffer(bytes(payload), dtype=np.uint8).reshape(
        header.angle_count, header.bins_per_line
    )
    # frombuffer over bytes is read-only; row views inherit that
    lines = tuple(
        Line(
            angle_degrees=angle_for_index(angle_index),
            angle_index=angle_index,
            range_meters=header.max_range_meters,
            intensities=matrix[angle_index],
        )
        for angle_index in range(header.angle_count)
    )

    return Packet(
        timestamp=timestamp_from_ms(header.timestamp_ms),
        lines=lines,
        total_byte_length=header.payload_length,
        max_range_meters=header.max_range_meters,
    )


def decode_frame(buffer: BytesLike) -> Packet:
    """
    Decode one wire frame into a packet.

    Args:
        buffer: Complete frame (HTTP response body or binary socket message)

    Returns:
        Decoded Packet

    Raises:
        HeaderBoundaryNotFound, HeaderParseError, UnexpectedFrameType,
        PayloadLengthMismatch
    """
    header, payload = split_frame(buffer)
    packet = build_packet(header, payload)
    logger.debug(
        f"Decoded frame: {header.angle_count} lines x {header.bins_per_line} bins, "
        f"max range {header.max_range_meters:.0f} m"
    )
    return packet


def encode_frame(header: FrameHeader, payload) -> bytes:
    """
    Build a wire frame from a header and an intensity payload.

    Args:
        header: Frame header
        payload: Bytes or uint8 array of angle_count * bins_per_line samples

    Returns:
        Compact JSON header followed by the raw payload
    """
    if isinstance(payload, np.ndarray):
        payload = np.ascontiguousarray(payload, dtype=np.uint8).tobytes()
    else:
        payload = bytes(payload)

    if len(payload) != header.payload_length:
        raise PayloadLengthMismatch(header.payload_length, len(payload))

    header_bytes = json.dumps(header.to_dict(), separators=(",", ":")).encode("utf-8")
    return header_bytes + payload
