"""Tests for structlog configuration and the log file mirror."""

from __future__ import annotations

import json
import logging

import structlog

from roomify.config import Settings
from roomify.logging import _MirrorStream, configure_logging, resolve_level


class TestResolveLevel:
    def test_known_levels(self):
        assert resolve_level("debug") == logging.DEBUG
        assert resolve_level("WARNING") == logging.WARNING
        assert resolve_level("warn") == logging.WARNING

    def test_unknown_level_defaults_to_info(self):
        assert resolve_level("chatty") == logging.INFO


class TestMirrorStream:
    def test_writes_to_stdout_and_file(self, tmp_path, capsys):
        path = tmp_path / "roomify.log"
        writer = _MirrorStream(str(path))
        writer.write("hello\n")
        writer.flush()
        assert capsys.readouterr().out == "hello\n"
        assert path.read_text() == "hello\n"

    def test_write_failure_stops_file_copy(self, tmp_path, capsys):
        writer = _MirrorStream(str(tmp_path / "roomify.log"))
        writer._file.close()
        writer.write("after close\n")
        writer.write("again\n")
        captured = capsys.readouterr()
        assert captured.out == "after close\nagain\n"
        assert captured.err.count("stopped accepting writes") == 1
        assert not writer.mirroring

    def test_unopenable_file_falls_back_to_stdout(self, tmp_path, capsys):
        writer = _MirrorStream(str(tmp_path / "missing-dir" / "x.log"))
        writer.write("still here\n")
        captured = capsys.readouterr()
        assert captured.out == "still here\n"
        assert "cannot open log file" in captured.err
        assert not writer.mirroring


class TestConfigureLogging:
    def teardown_method(self):
        structlog.reset_defaults()

    def test_production_emits_json_lines_to_file(self, tmp_path):
        path = tmp_path / "roomify.log"
        configure_logging(Settings(environment="production", log_file=str(path)))
        structlog.get_logger().info("intake_started", file_name="plan.png")

        line = path.read_text().strip().splitlines()[-1]
        entry = json.loads(line)
        assert entry["event"] == "intake_started"
        assert entry["file_name"] == "plan.png"
        assert entry["level"] == "info"
        assert "timestamp" in entry

    def test_level_filters_lower_events(self, tmp_path):
        path = tmp_path / "roomify.log"
        configure_logging(
            Settings(environment="production", log_level="WARNING", log_file=str(path))
        )
        log = structlog.get_logger()
        log.info("quiet")
        log.warning("loud")
        events = [json.loads(line)["event"] for line in path.read_text().splitlines()]
        assert events == ["loud"]

    def test_development_uses_console_renderer(self, capsys):
        configure_logging(Settings(environment="development"))
        structlog.get_logger().info("render_generation_started", session_id="abc")
        out = capsys.readouterr().out
        assert "render_generation_started" in out
        assert "session_id" in out
