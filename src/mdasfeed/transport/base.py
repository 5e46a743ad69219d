"""
Common transport machinery.

A transport delivers decoded packets from the sensor feed. Starting one
returns a FeedSession that owns the worker thread, the live connection
(if any) and the stop flag; there is no module-level connection state.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from ..errors import FeedError
from ..types import Packet

logger = logging.getLogger("mdasfeed.transport")

PacketCallback = Callable[[Packet], None]
ErrorCallback = Callable[[FeedError], None]


class FeedSession:
    """
    Lifecycle handle for one running transport.

    Calling the session (or its stop method) stops it: the worker will not
    issue another request or invoke another callback, and an open
    connection is closed.

    Example:
        session = transport.start(on_packet, on_error)
        ...
        session.stop()   # or session()
    """

    JOIN_TIMEOUT = 2.0

    def __init__(
        self,
        name: str,
        on_error: Optional[ErrorCallback] = None,
        close_connection: Optional[Callable[[Any], None]] = None,
    ):
        self.name = name
        self.errors_reported = 0
        self._on_error = on_error
        self._close_connection = close_connection
        self._stop_event = threading.Event()
        self._lock = threading.Lock()
        self._connection: Any = None
        self._thread: Optional[threading.Thread] = None

    @property
    def active(self) -> bool:
        """False once stop() has been called."""
        return not self._stop_event.is_set()

    @property
    def connected(self) -> bool:
        """Whether a connection is currently attached."""
        with self._lock:
            return self._connection is not None

    def run(self, target: Callable, *args):
        """Run target(*args) on the session's worker thread."""
        self._thread = threading.Thread(
            target=target,
            args=args,
            name=f"mdasfeed-{self.name}",
            daemon=True,
        )
        self._thread.start()

    def wait(self, timeout: float) -> bool:
        """Sleep up to timeout seconds; returns True if stopped meanwhile."""
        return self._stop_event.wait(timeout)

    def attach(self, connection: Any):
        with self._lock:
            self._connection = connection

    def detach(self):
        with self._lock:
            self._connection = None

    def report_error(self, error: FeedError):
        """Log an error and pass it to the error callback."""
        self.errors_reported += 1
        logger.warning(f"[{self.name}] {error}")
        if self._on_error and self.active:
            try:
                self._on_error(error)
            except Exception as e:
                logger.error(f"[{self.name}] Error callback failed: {e}")

    def stop(self):
        """Stop the session. Safe to call more than once."""
        if self._stop_event.is_set():
            return
        self._stop_event.set()

        with self._lock:
            connection = self._connection
            self._connection = None
        if connection is not None and self._close_connection:
            self._close_connection(connection)

        thread = self._thread
        if thread and thread is not threading.current_thread():
            thread.join(timeout=self.JOIN_TIMEOUT)
        logger.info(f"[{self.name}] Session stopped")

    __call__ = stop

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False


class Transport(ABC):
    """
    Base class for feed transports.

    Subclasses implement _run, which executes on the session thread and
    must return promptly once the session is no longer active.
    """

    name = "transport"

    def start(
        self,
        on_packet: PacketCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> FeedSession:
        """
        Start delivering packets.

        Args:
            on_packet: Called with each decoded Packet
            on_error: Called with each FeedError (decode or transport)

        Returns:
            FeedSession; call it or its stop() to stop
        """
        session = FeedSession(self.name, on_error=on_error, close_connection=self._close_connection)
        session.run(self._run, session, on_packet)
        logger.info(f"[{self.name}] Session started")
        return session

    @abstractmethod
    def _run(self, session: FeedSession, on_packet: PacketCallback):
        """Transport loop."""

    def _close_connection(self, connection: Any):
        """Close a connection attached to a session being stopped."""

    @staticmethod
    def _deliver(session: FeedSession, on_packet: PacketCallback, packet: Packet):
        """Invoke the packet callback unless the session was stopped."""
        if not session.active:
            return
        try:
            on_packet(packet)
        except Exception as e:
            logger.error(f"[{session.name}] Packet callback error: {e}")
