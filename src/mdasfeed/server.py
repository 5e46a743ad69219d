"""
WebSocket relay server for the MDAS radar display.

Runs the radar feed monitor and pushes every decoded sweep's targets to
display clients via Flask-SocketIO. In mock mode it also serves synthetic
wire frames at /api/radar/frame, which the monitor then pulls like a real
sensor feed.
"""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from flask import Flask, Response, jsonify
from flask_cors import CORS
from flask_socketio import SocketIO

from .config import FeedConfig
from .errors import FeedError
from .monitor import RadarMonitor
from .session_logger import get_session_logger, init_session_logger
from .simulator import MockRadarSource
from .types import SweepUpdate

logger = logging.getLogger(__name__)

app = Flask(__name__)
CORS(app)
socketio = SocketIO(app, cors_allowed_origins="*", async_mode="threading")

# Cap on targets sent per packet; the display cannot use more
MAX_EMITTED_TARGETS = 500

# Global state
monitor: Optional[RadarMonitor] = None
mock_source: Optional[MockRadarSource] = None
mock_lock = threading.Lock()


def update_to_dict(update: SweepUpdate) -> dict:
    """Convert a SweepUpdate to a JSON-serializable dict."""
    packet = update.packet
    targets = update.targets[:MAX_EMITTED_TARGETS]
    return {
        "timestamp": packet.timestamp.isoformat(),
        "lines": packet.angle_count,
        "length": packet.total_byte_length,
        "max_range_meters": packet.max_range_meters,
        "target_count": update.target_count,
        "truncated": update.target_count > len(targets),
        "targets": [t.to_dict() for t in targets],
    }


def feed_state() -> dict:
    """Current monitor state for display clients."""
    if not monitor:
        return {"running": False, "mock_mode": mock_source is not None}
    return {
        "stats": monitor.get_stats(),
        "config": monitor.get_config(),
        "mock_mode": mock_source is not None,
    }


@app.route("/api/radar/frame")
def radar_frame():
    """Serve the next synthetic wire frame (mock mode only)."""
    if mock_source is None:
        return Response("Mock feed disabled", status=503, mimetype="text/plain")

    with mock_lock:
        frame = mock_source.next_frame()
    return Response(frame, mimetype="application/octet-stream")


@app.route("/api/status")
def status():
    """Monitor statistics and configuration."""
    return jsonify(feed_state())


def on_sweep_update(update: SweepUpdate):
    """Callback for each processed packet."""
    socketio.emit("radar_packet", update_to_dict(update))


def on_feed_error(error: FeedError):
    """Callback for decode/transport errors."""
    socketio.emit("feed_error", {
        "error_type": type(error).__name__,
        "error": str(error),
        "timestamp": datetime.now().isoformat(),
    })


@socketio.on("connect")
def handle_connect():
    """Handle client connection."""
    logger.info("Display client connected")
    socketio.emit("feed_state", feed_state())


@socketio.on("disconnect")
def handle_disconnect():
    """Handle client disconnection."""
    logger.info("Display client disconnected")


@socketio.on("set_threshold")
def handle_set_threshold(data):
    """Change the detection threshold."""
    if not monitor:
        return
    try:
        threshold = int((data or {}).get("threshold"))
        monitor.set_threshold(threshold)
    except (TypeError, ValueError) as e:
        socketio.emit("feed_error", {"error_type": "ValueError", "error": str(e)})
        return
    socketio.emit("threshold_changed", {"threshold": monitor.threshold})


@socketio.on("clear_history")
def handle_clear_history():
    """Drop the sweep history (persistence trail)."""
    if monitor:
        monitor.clear_history()
        socketio.emit("history_cleared")


@socketio.on("get_feed_state")
def handle_get_feed_state():
    """Re-send the current feed state."""
    socketio.emit("feed_state", feed_state())


def start_monitor(config: FeedConfig, mock: bool = False):
    """
    Start the radar feed monitor.

    Args:
        config: Feed configuration
        mock: Serve synthetic frames at /api/radar/frame
    """
    global monitor, mock_source  # pylint: disable=global-statement

    # Stop any existing monitor first
    if monitor is not None:
        logger.info("Stopping existing monitor before starting new one")
        stop_monitor()

    mock_source = MockRadarSource() if mock else None

    monitor = RadarMonitor(config)

    session_logger = get_session_logger()
    if session_logger:
        session_logger.start_session(
            feed_url=config.url,
            mode=config.mode,
            config=monitor.get_config(),
        )

    monitor.start(update_callback=on_sweep_update, error_callback=on_feed_error)


def stop_monitor():
    """Stop the radar feed monitor."""
    global monitor  # pylint: disable=global-statement

    session_logger = get_session_logger()
    if session_logger:
        session_logger.end_session()

    if monitor:
        monitor.stop()
        monitor = None


def main():
    """Run the server."""
    import argparse  # pylint: disable=import-outside-toplevel

    parser = argparse.ArgumentParser(description="MDAS Radar Feed Server")
    parser.add_argument(
        "--mode", "-M", choices=["pull", "push"], default="pull",
        help="Feed transport: pull (periodic HTTP request, default) or push (WebSocket)"
    )
    parser.add_argument("--url", "-u", help="Feed URL (default: $MDAS_FEED_URL)")
    parser.add_argument(
        "--interval", type=float, default=1.0,
        help="Seconds between pull requests, measured from completion (default: 1.0)"
    )
    parser.add_argument(
        "--timeout", type=float, default=10.0, help="HTTP request timeout in seconds (default: 10)"
    )
    parser.add_argument(
        "--threshold", "-t", type=int, default=100,
        help="Detection threshold, 0-255; bins must exceed it (default: 100)"
    )
    parser.add_argument(
        "--persistence", type=int, default=3,
        help="Sweeps kept for persistence rendering (default: 3)"
    )
    parser.add_argument(
        "--angle-count", type=int, default=3600,
        help="Initial lines per sweep; follows the feed once frames arrive (default: 3600)"
    )
    parser.add_argument(
        "--secure-context", action="store_true",
        help="Treat the hosting context as secure (upgrade ws:// to wss://)"
    )
    parser.add_argument(
        "--merge-adjacent", action="store_true",
        help="Merge runs of adjacent bins into one target"
    )
    parser.add_argument(
        "--mock", "-m", action="store_true", help="Serve and consume synthetic frames (no sensor)"
    )
    parser.add_argument(
        "--host", default="0.0.0.0", help="Host to bind to (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--web-port", type=int, default=8080, help="Web server port (default: 8080)"
    )
    parser.add_argument(
        "--session-location", "-l", default="station",
        help="Location identifier for session logs"
    )
    parser.add_argument(
        "--log-dir", help="Directory for session logs (default: ~/mdasfeed_sessions)"
    )
    parser.add_argument("--no-logging", action="store_true", help="Disable session logging")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    print("=" * 50)
    print("  MDAS Radar Feed Server")
    print("=" * 50)
    print()

    if not args.no_logging and not args.mock:
        log_dir = Path(args.log_dir) if args.log_dir else None
        init_session_logger(log_dir=log_dir, location=args.session_location, enabled=True)
        print(f"Session logging enabled (location: {args.session_location})")
    else:
        init_session_logger(enabled=False)
        if args.no_logging:
            print("Session logging DISABLED")

    mock_url = None
    if args.mock:
        mock_url = f"http://127.0.0.1:{args.web_port}/api/radar/frame"
        args.mode = "pull"

    try:
        config = FeedConfig.from_args(args, url=mock_url)
    except ValueError as e:
        parser.error(str(e))

    start_monitor(config, mock=args.mock)

    if args.mock:
        print("Running in MOCK mode - synthetic frames served at /api/radar/frame")
    print(f"Feed: {config.mode} {config.url} (threshold {config.threshold})")
    print(f"Server starting at http://{args.host}:{args.web_port}")
    print()

    try:
        socketio.run(app, host=args.host, port=args.web_port, debug=False, allow_unsafe_werkzeug=True)
    finally:
        stop_monitor()


if __name__ == "__main__":
    main()
