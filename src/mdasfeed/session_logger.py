"""
Session logging for radar feed monitoring.

Provides structured logging of decoded packets, detections and errors
for later analysis of a feed session.
"""

import json
import logging
import threading
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .types import Packet, Target

logger = logging.getLogger("mdasfeed.session_logger")


@dataclass
class SessionMetadata:
    """Metadata about a logging session."""
    session_id: str
    start_time: str
    feed_url: Optional[str]
    mode: Optional[str]
    config: Dict[str, Any]


class SessionLogger:
    """
    JSON-lines session logger.

    Creates one file per session: session_YYYYMMDD_HHMMSS_<location>.jsonl

    Log entry types:
    - session_start: Session metadata
    - packet_decoded: Summary of each decoded packet
    - targets_detected: Targets found in a packet
    - error: Decode or transport errors
    - session_end: Session summary
    """

    DEFAULT_LOG_DIR = Path.home() / "mdasfeed_sessions"

    # Cap on targets written per packet entry; a noisy sweep can yield thousands
    MAX_LOGGED_TARGETS = 50

    def __init__(
        self,
        log_dir: Optional[Path] = None,
        location: str = "station",
        enabled: bool = True
    ):
        """
        Initialize session logger.

        Args:
            log_dir: Directory for log files (default: ~/mdasfeed_sessions)
            location: Location identifier for file naming
            enabled: Whether logging is enabled
        """
        self.log_dir = Path(log_dir) if log_dir else self.DEFAULT_LOG_DIR
        self.location = location
        self.enabled = enabled

        self._session_id: Optional[str] = None
        self._session_file: Optional[Any] = None
        self._session_path: Optional[Path] = None
        self._lock = threading.Lock()

        self._stats = {
            "packets_decoded": 0,
            "targets_detected": 0,
            "errors": 0,
        }

    def start_session(
        self,
        feed_url: Optional[str] = None,
        mode: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Start a new logging session.

        Returns:
            Session ID (empty if logging is disabled)
        """
        if not self.enabled:
            return ""

        self.log_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now()
        self._session_id = timestamp.strftime("%Y%m%d_%H%M%S")
        self._session_path = self.log_dir / f"session_{self._session_id}_{self.location}.jsonl"
        self._session_file = open(self._session_path, "w")

        self._stats = {k: 0 for k in self._stats}

        metadata = SessionMetadata(
            session_id=self._session_id,
            start_time=timestamp.isoformat(),
            feed_url=feed_url,
            mode=mode,
            config=config or {},
        )
        self._write_entry("session_start", asdict(metadata))

        logger.info(f"Session log started: {self._session_path}")
        return self._session_id

    def end_session(self):
        """End the current logging session and write summary."""
        if not self.enabled or not self._session_file:
            return

        self._write_entry("session_end", {
            "end_time": datetime.now().isoformat(),
            "stats": self._stats.copy(),
            "targets_per_packet": (
                self._stats["targets_detected"] / self._stats["packets_decoded"]
                if self._stats["packets_decoded"] > 0 else 0
            ),
        })

        with self._lock:
            self._session_file.close()
            self._session_file = None

        logger.info(f"Session log saved: {self._session_path}")

    def _write_entry(self, entry_type: str, data: Dict[str, Any]):
        """Write a log entry to the session file."""
        with self._lock:
            if not self._session_file:
                return

            entry = {
                "ts": datetime.now().isoformat(),
                "type": entry_type,
                **data
            }
            self._session_file.write(json.dumps(entry) + "\n")
            self._session_file.flush()

    def log_packet(self, packet: Packet):
        """Log a summary of a decoded packet."""
        if not self.enabled:
            return

        self._stats["packets_decoded"] += 1

        self._write_entry("packet_decoded", {
            "packet_number": self._stats["packets_decoded"],
            "timestamp": packet.timestamp.isoformat(),
            "lines": packet.angle_count,
            "bytes": packet.total_byte_length,
            "max_range_meters": packet.max_range_meters,
        })

    def log_targets(self, targets: List[Target], threshold: int):
        """Log the targets detected in the latest packet."""
        if not self.enabled:
            return

        self._stats["targets_detected"] += len(targets)

        self._write_entry("targets_detected", {
            "packet_number": self._stats["packets_decoded"],
            "threshold": threshold,
            "count": len(targets),
            "targets": [t.to_dict() for t in targets[:self.MAX_LOGGED_TARGETS]],
        })

    def log_error(self, error: Exception, context: Optional[Dict] = None):
        """Log a decode or transport error."""
        if not self.enabled:
            return

        self._stats["errors"] += 1

        self._write_entry("error", {
            "error_type": type(error).__name__,
            "error": str(error),
            "context": context or {},
        })

    @property
    def session_path(self) -> Optional[Path]:
        """Get the current session log file path."""
        return self._session_path

    @property
    def session_id(self) -> Optional[str]:
        """Get the current session ID."""
        return self._session_id

    @property
    def stats(self) -> Dict[str, int]:
        """Get current session statistics."""
        return self._stats.copy()


# Global session logger instance
_session_logger: Optional[SessionLogger] = None


def get_session_logger() -> Optional[SessionLogger]:
    """Get the global session logger instance."""
    return _session_logger


def init_session_logger(
    log_dir: Optional[Path] = None,
    location: str = "station",
    enabled: bool = True
) -> SessionLogger:
    """
    Initialize and return the global session logger.

    Args:
        log_dir: Directory for log files
        location: Location identifier
        enabled: Whether logging is enabled

    Returns:
        SessionLogger instance
    """
    global _session_logger  # pylint: disable=global-statement
    _session_logger = SessionLogger(log_dir=log_dir, location=location, enabled=enabled)
    return _session_logger
