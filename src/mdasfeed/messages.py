"""
Decoding of push-mode text messages.

A text message is decoded into exactly one of three variants, tried in
this order:

1. PacketMessage - a full packet (has a "lines" field)
2. SingleBeamMessage - one detection: {angleCdeg | angleIndex, rangeM, i1023}
3. UnknownMessage - anything else; dropped by the transport

Every variant exposes to_packet() so a single-detection feed can reuse
the same downstream pipeline as full sweeps.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Union

import numpy as np

from .errors import MessageParseError, UnrecognizedMessageShape
from .frame import angle_for_index, timestamp_from_ms
from .types import Line, Packet

logger = logging.getLogger("mdasfeed.messages")

# Single-beam messages are expanded onto a line of this many bins,
# with the reported intensity at the middle bin.
SINGLE_BEAM_BINS = 2048
SINGLE_BEAM_BIN = 1023


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class PacketMessage:
    """A full packet delivered as JSON."""
    packet: Packet

    def to_packet(self) -> Packet:
        return self.packet


@dataclass
class SingleBeamMessage:
    """A single detection on one beam."""
    angle_degrees: float
    angle_index: int
    range_meters: float
    intensity: int

    def to_packet(self) -> Packet:
        """Synthesize a one-line packet with the intensity at bin 1023."""
        intensities = np.zeros(SINGLE_BEAM_BINS, dtype=np.uint8)
        intensities[SINGLE_BEAM_BIN] = self.intensity
        intensities.flags.writeable = False

        line = Line(
            angle_degrees=self.angle_degrees,
            angle_index=self.angle_index,
            range_meters=self.range_meters,
            intensities=intensities,
        )
        return Packet(
            timestamp=datetime.now(timezone.utc),
            lines=(line,),
            total_byte_length=SINGLE_BEAM_BINS,
            max_range_meters=self.range_meters,
            single_beam=True,
        )


@dataclass
class UnknownMessage:
    """A message matching no known shape."""
    keys: List[str]

    def to_packet(self) -> Packet:
        raise UnrecognizedMessageShape(self.keys)


FeedMessage = Union[PacketMessage, SingleBeamMessage, UnknownMessage]


def _parse_timestamp(value) -> datetime:
    if _is_number(value):
        return timestamp_from_ms(int(value))
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as e:
            raise MessageParseError(f"Invalid packet timestamp {value!r}") from e
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    if value is None:
        return datetime.now(timezone.utc)
    raise MessageParseError(f"Invalid packet timestamp {value!r}")


def _intensity_array(values) -> np.ndarray:
    if not isinstance(values, list) or not all(_is_number(v) for v in values):
        raise MessageParseError("Line intensities must be a list of numbers")
    array = np.asarray(values)
    if array.size and (array.min() < 0 or array.max() > 255):
        raise MessageParseError("Line intensities must be in 0-255")
    array = array.astype(np.uint8)
    array.flags.writeable = False
    return array


def _line_from_dict(data) -> Line:
    if not isinstance(data, dict):
        raise MessageParseError(f"Packet line must be an object, got {type(data).__name__}")

    angle_index = data.get("angleIndex")
    range_meters = data.get("range")
    if isinstance(angle_index, bool) or not isinstance(angle_index, int):
        raise MessageParseError(f"Line angleIndex must be an integer, got {angle_index!r}")
    if not _is_number(range_meters):
        raise MessageParseError(f"Line range must be a number, got {range_meters!r}")

    angle = data.get("angle")
    angle_degrees = float(angle) % 360 if _is_number(angle) else angle_for_index(angle_index)

    return Line(
        angle_degrees=angle_degrees,
        angle_index=angle_index,
        range_meters=float(range_meters),
        intensities=_intensity_array(data.get("intensities")),
    )


def packet_from_dict(data: dict) -> Packet:
    """
    Build a packet from its JSON shape.

    Raises:
        MessageParseError: If lines or fields are malformed
    """
    raw_lines = data.get("lines")
    if not isinstance(raw_lines, list):
        raise MessageParseError("Packet 'lines' must be a list")

    lines = tuple(sorted((_line_from_dict(line) for line in raw_lines), key=lambda line: line.angle_index))
    total = sum(line.bins for line in lines)

    length = data.get("length", total)
    if length != total:
        raise MessageParseError(f"Packet length mismatch: declared {length}, lines hold {total}")

    max_range = data.get("maxRangeMeters")
    if max_range is None and lines:
        max_range = lines[0].range_meters
    if not _is_number(max_range):
        raise MessageParseError(f"Packet maxRangeMeters must be a number, got {max_range!r}")

    return Packet(
        timestamp=_parse_timestamp(data.get("timestamp")),
        lines=lines,
        total_byte_length=total,
        max_range_meters=float(max_range),
    )


def packet_to_dict(packet: Packet) -> dict:
    """JSON shape of a packet, as accepted by packet_from_dict."""
    timestamp = packet.timestamp.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return {
        "timestamp": timestamp.replace("+00:00", "Z"),
        "lines": [
            {
                "angle": line.angle_degrees,
                "angleIndex": line.angle_index,
                "range": line.range_meters,
                "intensities": line.intensities.tolist(),
            }
            for line in packet.lines
        ],
        "length": packet.total_byte_length,
        "maxRangeMeters": packet.max_range_meters,
    }


def _decode_packet(data: dict):
    if "lines" not in data:
        return None
    return PacketMessage(packet=packet_from_dict(data))


def _decode_single_beam(data: dict):
    angle_cdeg = data.get("angleCdeg")
    angle_index = data.get("angleIndex")
    range_m = data.get("rangeM")
    intensity = data.get("i1023")

    has_angle = _is_number(angle_cdeg) or _is_number(angle_index)
    if not (has_angle and _is_number(range_m) and _is_number(intensity)):
        return None

    if not 0 <= intensity <= 255:
        raise MessageParseError(f"Single-beam intensity must be in 0-255, got {intensity}")

    if _is_number(angle_cdeg):
        angle_degrees = (angle_cdeg / 100) % 360
        index = int(round(angle_cdeg / 10)) % 3600
    else:
        angle_degrees = angle_for_index(angle_index)
        index = int(angle_index) % 3600

    return SingleBeamMessage(
        angle_degrees=angle_degrees,
        angle_index=index,
        range_meters=float(range_m),
        intensity=int(intensity),
    )


_DECODERS = (_decode_packet, _decode_single_beam)


def decode_message_dict(data) -> FeedMessage:
    """Classify an already-parsed JSON value into a message variant."""
    if not isinstance(data, dict):
        return UnknownMessage(keys=[])

    for decoder in _DECODERS:
        message = decoder(data)
        if message is not None:
            return message

    return UnknownMessage(keys=sorted(data.keys()))


def decode_text_message(text: str) -> FeedMessage:
    """
    Decode a push-mode text message.

    Raises:
        MessageParseError: If the text is not JSON or a packet-shaped
            message is malformed
    """
    try:
        data = json.loads(text)
    except (ValueError, RecursionError) as e:
        raise MessageParseError(f"Failed to parse text message: {e}") from e

    return decode_message_dict(data)
