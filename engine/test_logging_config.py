"""Tests for log formatting and context propagation."""

import io
import json
import logging

from logging_config import (
    ContextLogger, DevelopmentFormatter, JSONFormatter,
    game_id_var, get_logger, record_context, setup_logging, table_context,
)


def make_record(message="AI drawing from deck", level=logging.INFO, **extra):
    record = logging.LogRecord("knockgolf.test", level, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestRecordContext:

    def test_record_fields_win_over_context_vars(self):
        with table_context("table-1", player_id="house"):
            context = record_context(make_record(player_id="ai", phase="thinking"))
        assert context == {"game_id": "table-1", "player_id": "ai", "phase": "thinking"}

    def test_table_context_is_restored(self):
        with table_context("table-1"):
            assert game_id_var.get() == "table-1"
        assert game_id_var.get() != "table-1"


class TestJSONFormatter:

    def test_fields(self):
        data = json.loads(JSONFormatter().format(make_record(player_id="ai", phase="thinking")))
        assert data["level"] == "INFO"
        assert data["msg"] == "AI drawing from deck"
        assert data["player_id"] == "ai"
        assert data["phase"] == "thinking"
        assert "where" not in data

    def test_warnings_carry_location(self):
        data = json.loads(JSONFormatter().format(make_record(level=logging.WARNING)))
        assert "where" in data


class TestDevelopmentFormatter:

    def test_context_in_line(self):
        line = DevelopmentFormatter().format(make_record(player_id="ai", phase="idle"))
        assert "player=ai" in line
        assert "phase=idle" in line
        assert line.endswith("AI drawing from deck")


class TestSetupLogging:

    def test_production_writes_json(self):
        stream = io.StringIO()
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            setup_logging("INFO", "production", stream=stream)
            logging.getLogger("knockgolf.test").info("round started")
        finally:
            root.handlers = saved_handlers
            root.setLevel(saved_level)

        lines = [json.loads(line) for line in stream.getvalue().splitlines()]
        assert lines[-1]["msg"] == "round started"


class TestContextLogger:

    def test_with_context_merges(self):
        log = get_logger("knockgolf.test").with_context(player_id="ai")
        assert isinstance(log, ContextLogger)
        _, kwargs = log.with_context(phase="thinking").process("msg", {"extra": {"round_num": 2}})
        assert kwargs["extra"] == {"player_id": "ai", "phase": "thinking", "round_num": 2}
