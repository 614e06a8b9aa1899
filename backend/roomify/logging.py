"""structlog setup shared by every Roomify entrypoint."""

from __future__ import annotations

import logging
import sys
from typing import IO

import structlog

from roomify.config import Settings, settings


def _stderr_warning(message: str) -> None:
    # structlog may not be configured yet, so this bypasses it
    print(f"WARNING: {message}", file=sys.stderr)


class _MirrorStream:
    """stdout, plus an append-only copy of every line in ``path``.

    The file copy stops at its first I/O error; stdout keeps receiving lines.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        self._file: IO[str] | None = None
        try:
            self._file = open(path, "a", encoding="utf-8")  # noqa: SIM115
        except OSError as exc:
            _stderr_warning(f"cannot open log file {path!r} ({exc}); logging to stdout only")

    @property
    def mirroring(self) -> bool:
        return self._file is not None

    def _copy(self, data: str) -> None:
        if self._file is None:
            return
        try:
            if data:
                self._file.write(data)
            self._file.flush()
        except (OSError, ValueError) as exc:
            self._file = None
            _stderr_warning(f"log file {self.path!r} stopped accepting writes ({exc})")

    def write(self, data: str) -> None:
        sys.stdout.write(data)
        self._copy(data)

    def flush(self) -> None:
        sys.stdout.flush()
        self._copy("")


def resolve_level(name: str) -> int:
    """Map a level name from settings to a stdlib level, defaulting to INFO."""
    level = logging.getLevelNamesMapping().get(name.upper())
    return level if level is not None else logging.INFO


def _renderer(cfg: Settings) -> structlog.types.Processor:
    if cfg.environment == "development":
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def configure_logging(config: Settings | None = None) -> None:
    """Configure structlog: console output in development, JSON lines elsewhere.

    When ``log_file`` is set, every line is also appended to that file.
    """
    cfg = config or settings
    stream = _MirrorStream(cfg.log_file) if cfg.log_file else None

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _renderer(cfg),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(resolve_level(cfg.log_level)),
        context_class=dict,
        # PrintLogger only calls write() and flush() on its file
        logger_factory=structlog.PrintLoggerFactory(file=stream),  # type: ignore[arg-type]
        cache_logger_on_first_use=True,
    )
