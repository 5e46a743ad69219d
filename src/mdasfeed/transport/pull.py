"""
Pull-mode transport: periodic HTTP requests for whole frames.
"""

import logging
from typing import Optional

import requests

from ..errors import FeedError, TransportError
from ..frame import decode_frame
from ..types import Packet
from .base import FeedSession, PacketCallback, Transport

logger = logging.getLogger("mdasfeed.transport.pull")


class PollingTransport(Transport):
    """
    Fetches one wire frame per cycle and decodes it.

    The next request is scheduled poll_interval seconds after the previous
    cycle completes (not at a fixed rate), so requests never overlap.
    A failed cycle is reported and the loop carries on.

    Example:
        transport = PollingTransport("http://radar.local/api/radar/frame", poll_interval=1.0)
        session = transport.start(on_packet=handle_packet, on_error=handle_error)
        ...
        session.stop()
    """

    name = "pull"

    def __init__(
        self,
        url: str,
        poll_interval: float = 1.0,
        request_timeout: float = 10.0,
        http: Optional[requests.Session] = None,
    ):
        """
        Args:
            url: Endpoint returning one wire frame per GET
            poll_interval: Seconds to wait after each completed cycle
            request_timeout: Per-request timeout in seconds
            http: Session to issue requests with (default: a new one)
        """
        self.url = url
        self.poll_interval = poll_interval
        self.request_timeout = request_timeout
        self.http = http or requests.Session()

    def fetch_packet(self) -> Packet:
        """
        Issue one request and decode the response body.

        Raises:
            TransportError: On connection failure, timeout or HTTP error status
            MalformedFrame: If the body is not a valid frame
        """
        try:
            response = self.http.get(self.url, timeout=self.request_timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(f"Failed to fetch radar data from {self.url}: {e}") from e

        return decode_frame(response.content)

    def _run(self, session: FeedSession, on_packet: PacketCallback):
        """Request, decode, deliver, wait; until stopped."""
        while session.active:
            try:
                packet = self.fetch_packet()
            except FeedError as e:
                session.report_error(e)
            except Exception as e:
                logger.exception(f"Unexpected error polling {self.url}")
                session.report_error(FeedError(f"Failed to fetch radar data from {self.url}: {e!r}"))
            else:
                self._deliver(session, on_packet, packet)

            if session.wait(self.poll_interval):
                break

        logger.debug(f"Polling loop for {self.url} exited")
