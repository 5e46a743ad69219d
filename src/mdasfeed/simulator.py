"""
Synthetic radar sweeps for mock mode and testing.

Echoes are painted onto the nearest angular line as a five-bin peak with
linear falloff, which is roughly what a ship looks like on the real feed.
"""

import logging
import math
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

import numpy as np

from .frame import build_packet, encode_frame
from .types import FRAME_TYPE, FrameHeader, Packet

logger = logging.getLogger("mdasfeed.simulator")

DEFAULT_BINS_PER_LINE = 2048
DEFAULT_ANGLE_COUNT = 3600
DEFAULT_MAX_RANGE_METERS = 24000.0

ECHO_SPREAD_BINS = 2        # Bins either side of the peak
ECHO_FALLOFF = 30           # Intensity lost per bin away from the peak


@dataclass
class SyntheticEcho:
    """A point reflector in the synthetic sweep."""
    angle_degrees: float
    range_meters: float
    intensity: int = 200
    drift_degrees: float = 0.0  # Angle change per sweep

    def advance(self):
        self.angle_degrees = (self.angle_degrees + self.drift_degrees) % 360


def render_sweep(
    echoes: Sequence[SyntheticEcho],
    bins_per_line: int = DEFAULT_BINS_PER_LINE,
    angle_count: int = DEFAULT_ANGLE_COUNT,
    max_range_meters: float = DEFAULT_MAX_RANGE_METERS,
) -> np.ndarray:
    """
    Render echoes into an (angle_count, bins_per_line) uint8 intensity matrix.

    Echoes outside the covered angles or range are skipped.
    """
    matrix = np.zeros((angle_count, bins_per_line), dtype=np.uint8)

    for echo in echoes:
        angle_index = int(round(echo.angle_degrees * 10)) % 3600
        if angle_index >= angle_count:
            continue

        range_bin = math.floor((echo.range_meters / max_range_meters) * bins_per_line)
        if not 0 <= range_bin < bins_per_line:
            continue

        for offset in range(-ECHO_SPREAD_BINS, ECHO_SPREAD_BINS + 1):
            b = range_bin + offset
            if 0 <= b < bins_per_line:
                value = max(0, echo.intensity - abs(offset) * ECHO_FALLOFF)
                matrix[angle_index, b] = max(matrix[angle_index, b], value)

    return matrix


def _header(bins_per_line: int, angle_count: int, max_range_meters: float,
            timestamp_ms: Optional[int] = None) -> FrameHeader:
    return FrameHeader(
        frame_type=FRAME_TYPE,
        timestamp_ms=timestamp_ms if timestamp_ms is not None else int(time.time() * 1000),
        bins_per_line=bins_per_line,
        angle_count=angle_count,
        max_range_meters=max_range_meters,
    )


def generate_test_packet(
    ship_angle: float = 45,
    ship_range: float = 5000,
    ship_intensity: int = 200,
) -> Packet:
    """
    Full-size test sweep (3600 x 2048, 24 km) with one ship.

    Args:
        ship_angle: Angle of the ship in degrees (0-360)
        ship_range: Range of the ship in meters
        ship_intensity: Peak intensity of the ship (0-255)
    """
    echo = SyntheticEcho(ship_angle, ship_range, ship_intensity)
    matrix = render_sweep([echo])
    header = _header(DEFAULT_BINS_PER_LINE, DEFAULT_ANGLE_COUNT, DEFAULT_MAX_RANGE_METERS)
    return build_packet(header, matrix.tobytes())


def default_echoes() -> List[SyntheticEcho]:
    """A handful of slowly drifting contacts for mock mode."""
    return [
        SyntheticEcho(45.0, 5000, 200, drift_degrees=0.2),
        SyntheticEcho(128.3, 2900, 180, drift_degrees=-0.1),
        SyntheticEcho(210.0, 11000, 150, drift_degrees=0.05),
        SyntheticEcho(302.7, 18500, 230, drift_degrees=0.15),
    ]


class MockRadarSource:
    """
    Produces successive wire frames from drifting synthetic echoes.

    Example:
        source = MockRadarSource()
        frame = source.next_frame()   # bytes, decodable by decode_frame
    """

    def __init__(
        self,
        echoes: Optional[List[SyntheticEcho]] = None,
        bins_per_line: int = DEFAULT_BINS_PER_LINE,
        angle_count: int = DEFAULT_ANGLE_COUNT,
        max_range_meters: float = DEFAULT_MAX_RANGE_METERS,
    ):
        self.echoes = echoes if echoes is not None else default_echoes()
        self.bins_per_line = bins_per_line
        self.angle_count = angle_count
        self.max_range_meters = max_range_meters
        self.sweeps_generated = 0

    def next_frame(self) -> bytes:
        """Render the current sweep as a wire frame, then advance the echoes."""
        matrix = render_sweep(
            self.echoes, self.bins_per_line, self.angle_count, self.max_range_meters
        )
        header = _header(self.bins_per_line, self.angle_count, self.max_range_meters)
        frame = encode_frame(header, matrix)

        for echo in self.echoes:
            echo.advance()
        self.sweeps_generated += 1

        logger.debug(f"Generated mock sweep {self.sweeps_generated} ({len(frame)} bytes)")
        return frame
