"""
Threshold target detection on sweep lines.

Every range bin whose intensity is strictly above the threshold becomes
its own target. A reflector spanning several bins therefore produces
several targets; merge_adjacent_targets is an optional stage that
collapses each contiguous run into one.
"""

import logging
from typing import Iterable, List

import numpy as np
from scipy import ndimage

from .types import Line, Packet, Target

logger = logging.getLogger("mdasfeed.detection")

DEFAULT_THRESHOLD = 100


def bin_range(bin_index: int, bins: int, max_range_meters: float) -> float:
    """Range in meters of a bin; bins are spread linearly from 0 to max range."""
    return (bin_index / bins) * max_range_meters


def detect_targets(line: Line, threshold: int = DEFAULT_THRESHOLD) -> List[Target]:
    """
    Detect targets in one line using a fixed intensity threshold.

    Args:
        line: Sweep line
        threshold: Intensity threshold (0-255); bins must exceed it

    Returns:
        One Target per qualifying bin, in ascending bin order
    """
    intensities = np.asarray(line.intensities)
    bins = len(intensities)
    hits = np.flatnonzero(intensities > threshold)

    return [
        Target(
            angle_degrees=line.angle_degrees,
            range_meters=bin_range(int(b), bins, line.range_meters),
            intensity=int(intensities[b]),
            angle_index=line.angle_index,
        )
        for b in hits
    ]


def merge_adjacent_targets(line: Line, threshold: int = DEFAULT_THRESHOLD) -> List[Target]:
    """
    Detect targets with contiguous above-threshold bins merged.

    Each run of adjacent qualifying bins yields a single target placed at
    the run's strongest bin.

    Args:
        line: Sweep line
        threshold: Intensity threshold (0-255)

    Returns:
        One Target per run, in ascending range order
    """
    intensities = np.asarray(line.intensities)
    bins = len(intensities)
    labels, run_count = ndimage.label(intensities > threshold)
    if run_count == 0:
        return []

    peaks = ndimage.maximum_position(intensities, labels, index=np.arange(1, run_count + 1))

    return [
        Target(
            angle_degrees=line.angle_degrees,
            range_meters=bin_range(int(peak[0]), bins, line.range_meters),
            intensity=int(intensities[peak[0]]),
            angle_index=line.angle_index,
        )
        for peak in peaks
    ]


def assign_ids(targets: Iterable[Target]) -> List[Target]:
    """Number targets sequentially from zero in the order given."""
    numbered = []
    for target_id, target in enumerate(targets):
        target.id = target_id
        numbered.append(target)
    return numbered


def detect_packet_targets(
    packet: Packet,
    threshold: int = DEFAULT_THRESHOLD,
    merge_adjacent: bool = False,
    with_positions: bool = True,
) -> List[Target]:
    """
    Run detection over every line of a packet.

    Lines are visited by ascending angle index and bins by ascending index;
    IDs restart at zero for each packet.

    Args:
        packet: Decoded packet
        threshold: Intensity threshold (0-255)
        merge_adjacent: Collapse contiguous runs of bins into one target
        with_positions: Fill in Cartesian x/y for each target

    Returns:
        All targets in the packet, numbered
    """
    detect = merge_adjacent_targets if merge_adjacent else detect_targets

    targets: List[Target] = []
    for line in sorted(packet.lines, key=lambda line: line.angle_index):
        targets.extend(detect(line, threshold))

    if with_positions:
        for target in targets:
            target.with_position()

    logger.debug(f"Detected {len(targets)} targets above {threshold} in {packet.angle_count} lines")
    return assign_ids(targets)
