"""
Data types for the radar feed.

These types represent one decoded sweep (packet) from the sensor, its
angular lines, and the point targets extracted from them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple

import numpy as np

from .geometry import bearing_from_cartesian, meters_to_nautical_miles, polar_to_cartesian

FRAME_TYPE = "radar_frame"


@dataclass(frozen=True)
class FrameHeader:
    """
    JSON header that precedes the binary payload of a wire frame.

    Attributes:
        frame_type: Frame tag, must be "radar_frame"
        timestamp_ms: Unix epoch milliseconds
        bins_per_line: Range samples per angular line
        angle_count: Angular lines in a full sweep
        max_range_meters: Range represented by the last bin
    """
    frame_type: str
    timestamp_ms: int
    bins_per_line: int
    angle_count: int
    max_range_meters: float

    @property
    def payload_length(self) -> int:
        """Number of payload bytes this header announces."""
        return self.angle_count * self.bins_per_line

    def to_dict(self) -> dict:
        """Wire representation of the header."""
        return {
            "type": self.frame_type,
            "timestamp_ms": self.timestamp_ms,
            "bins_per_line": self.bins_per_line,
            "angle_count": self.angle_count,
            "max_range_meters": self.max_range_meters,
        }


@dataclass(frozen=True, eq=False)
class Line:
    """
    Intensity profile for one angle across all range bins.

    Index 0 of ``intensities`` is the closest range bin, the last index
    is ``range_meters``.
    """
    angle_degrees: float
    angle_index: int
    range_meters: float
    intensities: np.ndarray  # uint8, read-only

    @property
    def bins(self) -> int:
        return len(self.intensities)


@dataclass(frozen=True, eq=False)
class Packet:
    """
    One decoded sweep.

    Created fresh on every successful decode and never mutated.

    Attributes:
        timestamp: Absolute UTC instant of the sweep
        lines: Lines ordered by ascending angle index
        total_byte_length: angle_count * bins_per_line
        max_range_meters: Range of the last bin of every line
        single_beam: Synthesized from a single-beam update rather than a full sweep
    """
    timestamp: datetime
    lines: Tuple[Line, ...]
    total_byte_length: int
    max_range_meters: float
    single_beam: bool = False

    @property
    def angle_count(self) -> int:
        return len(self.lines)


@dataclass
class Target:
    """
    A point target extracted from one range bin.

    ``id`` is only meaningful within the packet it was detected in and is
    not a track identity.
    """
    angle_degrees: float
    range_meters: float
    intensity: int
    angle_index: Optional[int] = None
    x: Optional[float] = None
    y: Optional[float] = None
    id: Optional[int] = None

    def with_position(self) -> "Target":
        """Fill in Cartesian coordinates from the polar position."""
        self.x, self.y = polar_to_cartesian(self.angle_degrees, self.range_meters)
        return self

    @property
    def bearing_degrees(self) -> float:
        """Compass bearing from own ship (0 = north, clockwise)."""
        if self.x is None or self.y is None:
            x, y = polar_to_cartesian(self.angle_degrees, self.range_meters)
        else:
            x, y = self.x, self.y
        return bearing_from_cartesian(x, y)

    @property
    def distance_nm(self) -> float:
        """Range in nautical miles."""
        return meters_to_nautical_miles(self.range_meters)

    def to_dict(self) -> dict:
        """JSON-serializable representation for the display layer."""
        return {
            "id": self.id,
            "angle": round(self.angle_degrees, 1),
            "angle_index": self.angle_index,
            "range": round(self.range_meters, 1),
            "intensity": self.intensity,
            "x": round(self.x, 1) if self.x is not None else None,
            "y": round(self.y, 1) if self.y is not None else None,
            "bearing": round(self.bearing_degrees, 1),
            "distance_nm": round(self.distance_nm, 2),
        }


@dataclass
class SweepUpdate:
    """A decoded packet together with the targets detected in it."""
    packet: Packet
    targets: List[Target] = field(default_factory=list)

    @property
    def target_count(self) -> int:
        return len(self.targets)
