"""Tests for RadarMonitor, FeedConfig and the session logger."""

import json
from argparse import Namespace
from datetime import datetime, timezone
from unittest.mock import Mock

import numpy as np
import pytest

from mdasfeed import session_logger as session_logger_module
from mdasfeed.config import DEFAULT_FEED_URL, FeedConfig
from mdasfeed.errors import TransportError
from mdasfeed.frame import decode_frame
from mdasfeed.messages import decode_message_dict
from mdasfeed.monitor import RadarMonitor
from mdasfeed.session_logger import SessionLogger, init_session_logger
from mdasfeed.simulator import generate_test_packet
from mdasfeed.types import Line, Packet


def make_line(intensities, angle_index: int = 0, range_meters: float = 24000) -> Line:
    return Line(
        angle_degrees=(angle_index / 10) % 360,
        angle_index=angle_index,
        range_meters=range_meters,
        intensities=np.asarray(intensities, dtype=np.uint8),
    )


def make_packet(lines) -> Packet:
    return Packet(
        timestamp=datetime.now(timezone.utc),
        lines=tuple(lines),
        total_byte_length=sum(line.bins for line in lines),
        max_range_meters=lines[0].range_meters,
    )


def make_monitor(**config_overrides) -> RadarMonitor:
    config = FeedConfig(**config_overrides)
    return RadarMonitor(config, transport=Mock())


# =============================================================================
# Tests for RadarMonitor
# =============================================================================

class TestRadarMonitor:
    """Tests for the packet pipeline."""

    def setup_method(self):
        session_logger_module._session_logger = None

    def test_handle_packet(self):
        monitor = make_monitor()
        packet = make_packet([make_line([0, 200, 0, 150], angle_index=0), make_line([0, 0, 0, 0], angle_index=1)])

        update = monitor.handle_packet(packet)

        assert update.packet is packet
        assert update.target_count == 2
        assert monitor.get_latest_targets()[1].intensity == 150
        assert len(monitor.history) == 2

        stats = monitor.get_stats()
        assert stats["packets_processed"] == 1
        assert stats["targets_detected"] == 2
        assert stats["history_lines"] == 2
        assert stats["history_capacity"] == 3 * 2

    def test_history_sized_from_decoded_frames(self):
        """Five decodes of a two-line frame keep the last three sweeps: six lines."""
        header = {
            "type": "radar_frame",
            "timestamp_ms": 1700000000000,
            "bins_per_line": 4,
            "angle_count": 2,
            "max_range_meters": 100,
        }
        frame = json.dumps(header).encode("utf-8") + bytes([0, 0, 0, 0, 0, 0, 150, 0])
        monitor = make_monitor(persistence_sweeps=3)

        for _ in range(5):
            monitor.handle_packet(decode_frame(frame))

        assert monitor.history.capacity == 6
        assert len(monitor.history) == 6
        assert [line.angle_index for line in monitor.history] == [0, 1, 0, 1, 0, 1]

    def test_single_beam_packets_keep_capacity(self):
        monitor = make_monitor(persistence_sweeps=2, angle_count=3)
        for i in range(8):
            message = decode_message_dict({"angleIndex": i, "rangeM": 1000, "i1023": 200})
            monitor.handle_packet(message.to_packet())

        assert monitor.history.capacity == 6
        assert [line.angle_index for line in monitor.history] == [2, 3, 4, 5, 6, 7]

    def test_update_callback(self):
        monitor = make_monitor()
        callback = Mock()
        monitor.start(update_callback=callback)

        update = monitor.handle_packet(make_packet([make_line([0, 200])]))

        callback.assert_called_once_with(update)

    def test_set_threshold(self):
        monitor = make_monitor()
        packet = make_packet([make_line([0, 120, 180])])

        assert monitor.handle_packet(packet).target_count == 2
        monitor.set_threshold(150)
        assert monitor.threshold == 150
        assert monitor.handle_packet(packet).target_count == 1

    @pytest.mark.parametrize("threshold", [-1, 256])
    def test_set_threshold_out_of_range(self, threshold):
        with pytest.raises(ValueError):
            make_monitor().set_threshold(threshold)

    def test_merge_adjacent_config(self):
        monitor = make_monitor(merge_adjacent=True)
        update = monitor.handle_packet(generate_test_packet())
        assert update.target_count == 1

    def test_handle_error(self):
        monitor = make_monitor()
        on_error = Mock()
        monitor.start(error_callback=on_error)
        error = TransportError("down")

        monitor.handle_error(error)

        on_error.assert_called_once_with(error)
        assert monitor.get_stats()["errors"] == 1

    def test_start_and_stop(self):
        transport = Mock()
        monitor = RadarMonitor(FeedConfig(), transport=transport)

        monitor.start()
        transport.start.assert_called_once_with(monitor.handle_packet, monitor.handle_error)
        assert monitor.running

        session = transport.start.return_value
        monitor.stop()
        session.stop.assert_called_once()
        assert not monitor.running

    def test_start_twice_is_noop(self):
        transport = Mock()
        monitor = RadarMonitor(FeedConfig(), transport=transport)
        monitor.start()
        monitor.start()
        assert transport.start.call_count == 1

    def test_clear_history(self):
        monitor = make_monitor()
        monitor.handle_packet(make_packet([make_line([0, 0])]))
        monitor.clear_history()
        assert len(monitor.history) == 0

    def test_transport_built_from_config(self):
        monitor = RadarMonitor(FeedConfig(mode="push", url="ws://radar.local/feed"))
        assert monitor.transport.name == "push"

    def test_get_config(self):
        config = make_monitor(threshold=42).get_config()
        assert config["threshold"] == 42
        assert config["mode"] == "pull"


# =============================================================================
# Tests for FeedConfig
# =============================================================================

class TestFeedConfig:
    """Tests for configuration validation and sources."""

    def test_defaults(self):
        config = FeedConfig()
        assert config.mode == "pull"
        assert config.threshold == 100
        assert config.poll_interval_s == 1.0

    @pytest.mark.parametrize("overrides", [
        {"mode": "carrier-pigeon"},
        {"threshold": 256},
        {"threshold": -1},
        {"poll_interval_s": -0.5},
        {"persistence_sweeps": 0},
        {"angle_count": 0},
    ])
    def test_invalid(self, overrides):
        with pytest.raises(ValueError):
            FeedConfig(**overrides)

    def make_args(self, url=None):
        return Namespace(
            mode="push", url=url, interval=2.0, timeout=5.0, secure_context=True,
            threshold=80, merge_adjacent=False, persistence=4, angle_count=720,
        )

    def test_from_args(self):
        config = FeedConfig.from_args(self.make_args(url="ws://radar.local/feed"))

        assert config.mode == "push"
        assert config.url == "ws://radar.local/feed"
        assert config.poll_interval_s == 2.0
        assert config.persistence_sweeps == 4
        assert config.angle_count == 720

    def test_url_from_environment(self, monkeypatch):
        monkeypatch.setenv("MDAS_FEED_URL", "http://env.local/frame")
        assert FeedConfig.from_args(self.make_args()).url == "http://env.local/frame"

    def test_url_default(self, monkeypatch):
        monkeypatch.delenv("MDAS_FEED_URL", raising=False)
        assert FeedConfig.from_args(self.make_args()).url == DEFAULT_FEED_URL

    def test_explicit_url_wins(self, monkeypatch):
        monkeypatch.setenv("MDAS_FEED_URL", "http://env.local/frame")
        config = FeedConfig.from_args(self.make_args(url="http://cli.local/frame"), url="http://mock/frame")
        assert config.url == "http://mock/frame"


# =============================================================================
# Tests for SessionLogger
# =============================================================================

class TestSessionLogger:
    """Tests for JSON-lines session logs."""

    def teardown_method(self):
        session_logger_module._session_logger = None

    def read_entries(self, path):
        with open(path) as f:
            return [json.loads(line) for line in f]

    def test_session_file(self, tmp_path):
        session_logger = SessionLogger(log_dir=tmp_path, location="pier")
        session_id = session_logger.start_session(feed_url="http://radar.local", mode="pull")
        session_logger.end_session()

        assert session_logger.session_path.name == f"session_{session_id}_pier.jsonl"
        entries = self.read_entries(session_logger.session_path)
        assert [e["type"] for e in entries] == ["session_start", "session_end"]
        assert entries[0]["feed_url"] == "http://radar.local"

    def test_monitor_writes_entries(self, tmp_path):
        session_logger = init_session_logger(log_dir=tmp_path)
        session_logger.start_session(mode="pull")
        monitor = make_monitor()

        monitor.handle_packet(make_packet([make_line([0, 200, 150])]))
        monitor.handle_error(TransportError("timeout"))
        session_logger.end_session()

        entries = self.read_entries(session_logger.session_path)
        types = [e["type"] for e in entries]
        assert types == ["session_start", "packet_decoded", "targets_detected", "error", "session_end"]

        targets_entry = entries[2]
        assert targets_entry["count"] == 2
        assert targets_entry["threshold"] == 100
        assert targets_entry["targets"][0]["intensity"] == 200

        assert entries[3]["error_type"] == "TransportError"
        assert entries[4]["stats"] == {"packets_decoded": 1, "targets_detected": 2, "errors": 1}

    def test_logged_targets_capped(self, tmp_path):
        session_logger = SessionLogger(log_dir=tmp_path)
        session_logger.start_session()
        monitor = make_monitor()
        update = monitor.handle_packet(make_packet([make_line([200] * 80)]))

        session_logger.log_targets(update.targets, 100)
        session_logger.end_session()

        entry = self.read_entries(session_logger.session_path)[1]
        assert entry["count"] == 80
        assert len(entry["targets"]) == SessionLogger.MAX_LOGGED_TARGETS

    def test_disabled(self, tmp_path):
        session_logger = SessionLogger(log_dir=tmp_path, enabled=False)
        assert session_logger.start_session() == ""
        session_logger.log_error(TransportError("x"))
        assert list(tmp_path.iterdir()) == []
