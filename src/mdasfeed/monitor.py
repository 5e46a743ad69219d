"""
Radar feed monitor.

Runs the ingestion pipeline: a transport delivers decoded packets, every
packet goes through target detection and into the sweep history, and the
result is handed to the display callback as a SweepUpdate.
"""

import logging
import threading
from dataclasses import asdict
from typing import Callable, List, Optional

from .config import FeedConfig
from .detection import detect_packet_targets
from .errors import FeedError
from .history import SweepHistory
from .session_logger import get_session_logger
from .transport import FeedSession, Transport, create_transport
from .types import Packet, SweepUpdate, Target

logger = logging.getLogger("mdasfeed.monitor")


class RadarMonitor:
    """
    Receives the radar feed and extracts targets from each sweep.

    Example:
        monitor = RadarMonitor(FeedConfig(url="http://radar.local/api/radar/frame"))
        monitor.start(update_callback=on_update)

        # Updates arrive on the transport thread...

        monitor.stop()
    """

    def __init__(
        self,
        config: Optional[FeedConfig] = None,
        transport: Optional[Transport] = None,
    ):
        """
        Initialize the monitor.

        Args:
            config: Feed configuration (default: FeedConfig())
            transport: Transport to use; built from config if None
        """
        self.config = config or FeedConfig()
        self.transport = transport or create_transport(self.config)
        self.history = SweepHistory(
            persistence_sweeps=self.config.persistence_sweeps,
            angle_count=self.config.angle_count,
        )

        self._session: Optional[FeedSession] = None
        self._update_callback: Optional[Callable[[SweepUpdate], None]] = None
        self._error_callback: Optional[Callable[[FeedError], None]] = None
        self._latest: Optional[SweepUpdate] = None
        self._lock = threading.Lock()

        self.packets_processed = 0
        self.targets_detected = 0
        self.errors = 0

    @property
    def running(self) -> bool:
        return self._session is not None and self._session.active

    @property
    def threshold(self) -> int:
        return self.config.threshold

    def set_threshold(self, threshold: int):
        """Change the detection threshold for subsequent packets."""
        if not 0 <= threshold <= 255:
            raise ValueError(f"threshold must be in 0-255, got {threshold}")
        self.config.threshold = threshold
        logger.info(f"Detection threshold set to {threshold}")

    def start(
        self,
        update_callback: Optional[Callable[[SweepUpdate], None]] = None,
        error_callback: Optional[Callable[[FeedError], None]] = None,
    ):
        """
        Start receiving the feed.

        Args:
            update_callback: Called with a SweepUpdate for every packet
            error_callback: Called with every decode/transport error
        """
        if self.running:
            return

        self._update_callback = update_callback
        self._error_callback = error_callback
        self._session = self.transport.start(self.handle_packet, self.handle_error)
        logger.info(f"Radar monitor started ({self.config.mode} mode, {self.config.url})")

    def stop(self):
        """Stop receiving the feed."""
        if self._session:
            self._session.stop()
            self._session = None
        logger.info("Radar monitor stopped")

    def handle_packet(self, packet: Packet) -> SweepUpdate:
        """
        Process one decoded packet.

        Detects targets, appends the packet's lines to the sweep history
        and notifies the update callback. Full sweeps also set the history
        capacity to persistence_sweeps * their line count.
        """
        targets = detect_packet_targets(
            packet,
            threshold=self.config.threshold,
            merge_adjacent=self.config.merge_adjacent,
        )
        if not packet.single_beam and packet.angle_count and packet.angle_count != self.history.angle_count:
            logger.info(
                f"Feed sweep has {packet.angle_count} lines; "
                f"history capacity now {self.config.persistence_sweeps * packet.angle_count}"
            )
            self.history.resize(packet.angle_count)
        self.history.append(packet.lines)

        update = SweepUpdate(packet=packet, targets=targets)
        with self._lock:
            self._latest = update
            self.packets_processed += 1
            self.targets_detected += len(targets)

        session_logger = get_session_logger()
        if session_logger:
            session_logger.log_packet(packet)
            session_logger.log_targets(targets, self.config.threshold)

        logger.debug(f"Packet {self.packets_processed}: {len(targets)} targets")

        if self._update_callback:
            self._update_callback(update)
        return update

    def handle_error(self, error: FeedError):
        """Record a decode/transport error and notify the error callback."""
        with self._lock:
            self.errors += 1

        session_logger = get_session_logger()
        if session_logger:
            session_logger.log_error(error, {"mode": self.config.mode, "url": self.config.url})

        if self._error_callback:
            self._error_callback(error)

    def get_latest_targets(self) -> List[Target]:
        """Targets from the most recent packet."""
        with self._lock:
            return list(self._latest.targets) if self._latest else []

    def get_latest_update(self) -> Optional[SweepUpdate]:
        with self._lock:
            return self._latest

    def clear_history(self):
        """Drop all lines from the sweep history."""
        self.history.clear()

    def get_stats(self) -> dict:
        """Get processing statistics."""
        with self._lock:
            return {
                "running": self.running,
                "packets_processed": self.packets_processed,
                "targets_detected": self.targets_detected,
                "errors": self.errors,
                "targets_per_packet": self.targets_detected / max(1, self.packets_processed),
                "history_lines": len(self.history),
                "history_capacity": self.history.capacity,
            }

    def get_config(self) -> dict:
        return asdict(self.config)

    def __enter__(self):
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.stop()
        return False
