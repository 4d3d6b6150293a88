"""Unit tests for logging configuration."""

import json

import structlog

from orgtree.utils.logging import configure_logging


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_explicit_log_file(self, tmp_path):
        log_file = tmp_path / "nested" / "orgtree.log"

        assert configure_logging(log_file) == log_file

        structlog.get_logger().info("document_loaded", path="notes.org")
        configure_logging(tmp_path / "other.log")

        record = json.loads(log_file.read_text().splitlines()[-1])
        assert record["event"] == "document_loaded"
        assert record["level"] == "info"

    def test_reconfigure_switches_file(self, tmp_path):
        first, second = tmp_path / "a.log", tmp_path / "b.log"
        configure_logging(first)
        configure_logging(second)

        structlog.get_logger().info("after_switch")
        configure_logging(tmp_path / "c.log")

        assert first.exists()
        assert "after_switch" not in first.read_text()
        assert "after_switch" in second.read_text()

    def test_log_file_from_environment(self, tmp_path, monkeypatch):
        log_file = tmp_path / "env.log"
        monkeypatch.setenv("ORGTREE_LOG_FILE", str(log_file))

        assert configure_logging() == log_file
        assert log_file.exists()

    def test_level_from_environment(self, tmp_path, monkeypatch):
        log_file = tmp_path / "warn.log"
        monkeypatch.setenv("ORGTREE_LOG_LEVEL", "warning")
        configure_logging(log_file)

        structlog.get_logger().info("hidden")
        structlog.get_logger().warning("shown")
        configure_logging(tmp_path / "flush.log")

        text = log_file.read_text()
        assert "hidden" not in text
        assert "shown" in text
