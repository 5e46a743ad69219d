"""
Push-mode transport: a persistent WebSocket delivering frames and
single-beam updates.

Binary messages are complete wire frames. Text messages are JSON and are
decoded by mdasfeed.messages into a full packet, a single-beam update,
or an unknown shape (logged and dropped).
"""

import logging
from typing import Union

from simple_websocket import Client, ConnectionClosed
from simple_websocket import ConnectionError as HandshakeError

from ..errors import FeedError, TransportError, UnrecognizedMessageShape
from ..frame import decode_frame
from ..messages import decode_text_message
from ..types import Packet
from .base import FeedSession, PacketCallback, Transport
from .urls import normalize_socket_url

logger = logging.getLogger("mdasfeed.transport.push")


class SocketTransport(Transport):
    """
    Receives packets over a WebSocket, one message at a time.

    A decode error affects only that message; the connection stays open.
    If the connection cannot be opened, or the peer closes it, the error
    is reported and the session ends. Reconnecting is up to the caller.

    Example:
        transport = SocketTransport("https://radar.local/feed", secure_context=True)
        session = transport.start(on_packet=handle_packet, on_error=handle_error)
    """

    name = "push"

    # How long a receive blocks before re-checking the stop flag
    RECEIVE_TIMEOUT = 0.5

    def __init__(self, url: str, secure_context: bool = False):
        """
        Args:
            url: Feed URL (ws, wss, http, https, or bare host/path)
            secure_context: Whether the hosting context is secure
        """
        self.url = normalize_socket_url(url, secure_context)

    def decode_message(self, message: Union[bytes, str]) -> Packet:
        """
        Decode one WebSocket message into a packet.

        Raises:
            MalformedFrame: Binary message is not a valid frame
            MessageParseError: Text message is not JSON or not a valid packet
            UnrecognizedMessageShape: Text message has no known shape
        """
        if isinstance(message, (bytes, bytearray)):
            return decode_frame(message)
        return decode_text_message(message).to_packet()

    def _connect(self) -> Client:
        try:
            return Client.connect(self.url)
        except (OSError, HandshakeError) as e:
            raise TransportError(f"Failed to connect to {self.url}: {e}") from e

    def _close_connection(self, connection: Client):
        if not connection.connected:
            return
        try:
            connection.close()
        except (ConnectionClosed, OSError) as e:
            logger.debug(f"Connection already closed: {e}")

    def _run(self, session: FeedSession, on_packet: PacketCallback):
        try:
            ws = self._connect()
        except TransportError as e:
            session.report_error(e)
            return

        session.attach(ws)
        logger.info(f"Connected to {self.url}")

        try:
            while session.active:
                try:
                    message = ws.receive(timeout=self.RECEIVE_TIMEOUT)
                except ConnectionClosed as e:
                    if session.active:
                        session.report_error(TransportError(f"Connection to {self.url} closed: {e}"))
                    break

                if message is None:
                    continue

                self._handle_message(session, on_packet, message)
        finally:
            session.detach()
            self._close_connection(ws)
            logger.info(f"Disconnected from {self.url}")

    def _handle_message(self, session: FeedSession, on_packet: PacketCallback, message):
        try:
            packet = self.decode_message(message)
        except UnrecognizedMessageShape as e:
            logger.warning(f"Ignoring message: {e}")
            return
        except FeedError as e:
            session.report_error(e)
            return
        except Exception as e:
            logger.exception(f"Unexpected error decoding message from {self.url}")
            session.report_error(FeedError(f"Failed to decode message from {self.url}: {e!r}"))
            return

        self._deliver(session, on_packet, packet)
