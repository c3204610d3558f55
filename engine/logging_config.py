"""
Logging setup for the Knock Golf engine.

Two output styles share one notion of context (table, player, AI phase,
round): JSON lines when ENVIRONMENT=production, coloured single lines
otherwise. Context comes from the ContextVars set by table_context() and
from `extra` fields attached through ContextLogger.
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Iterator, Optional, TextIO

game_id_var: ContextVar[Optional[str]] = ContextVar("game_id", default=None)
player_id_var: ContextVar[Optional[str]] = ContextVar("player_id", default=None)

CONTEXT_FIELDS = ("game_id", "player_id", "phase", "round_num")


def record_context(record: logging.LogRecord) -> dict:
    """
    Context for one record. Fields set on the record beat the ContextVars.
    """
    context = {"game_id": game_id_var.get(), "player_id": player_id_var.get()}
    for name in CONTEXT_FIELDS:
        value = getattr(record, name, None)
        if value is not None:
            context[name] = value
    return {k: v for k, v in context.items() if v is not None}


@contextmanager
def table_context(game_id: str, player_id: Optional[str] = None) -> Iterator[None]:
    """Tag every log line inside the block with a table (and optionally a player)."""
    game_token = game_id_var.set(game_id)
    player_token = player_id_var.set(player_id)
    try:
        yield
    finally:
        player_id_var.reset(player_token)
        game_id_var.reset(game_token)


class JSONFormatter(logging.Formatter):
    """One JSON object per line, context flattened into the top level."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            **record_context(record),
        }
        if record.levelno >= logging.WARNING:
            payload["where"] = f"{record.module}.{record.funcName}:{record.lineno}"
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Readable single-line output for running simulations by hand."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[2m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[41m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, "")
        level = f"{color}{record.levelname:<7}{self.RESET if color else ''}"
        when = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]

        context = record_context(record)
        if "game_id" in context:
            context["game_id"] = context["game_id"][:8]
        tags = " ".join(f"{k.replace('_id', '')}={v}" for k, v in context.items())
        tags = f" [{tags}]" if tags else ""

        line = f"{when} {level} {record.name}{tags}: {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: str = "INFO",
    environment: str = "development",
    stream: Optional[TextIO] = None,
) -> logging.Handler:
    """
    Install a single root handler.

    Args:
        level: Log level name. Unknown names fall back to INFO.
        environment: "production" selects JSON lines.
        stream: Output stream (stdout by default).

    Returns:
        The installed handler.
    """
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(JSONFormatter() if environment == "production" else DevelopmentFormatter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    logging.getLogger(__name__).debug(f"Logging ready ({level}, {environment})")
    return handler


class ContextLogger(logging.LoggerAdapter):
    """
    LoggerAdapter carrying fixed context, e.g. the AI's player id.

    Per-call `extra` is merged over the adapter's own context.
    """

    def __init__(self, logger: logging.Logger, extra: Optional[dict] = None):
        super().__init__(logger, extra or {})

    def with_context(self, **fields) -> "ContextLogger":
        return ContextLogger(self.logger, {**self.extra, **fields})

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    return ContextLogger(logging.getLogger(name))
