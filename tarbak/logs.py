# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Tarbak Logging - structlog setup for console and log file output.

Modules log through ``structlog.get_logger()`` with snake_case event names.
configure_logging() renders each event as one timestamped line and writes
it to stdout and, optionally, appends it to a log file. Writing the log
file is best effort: a failing log sink never fails a backup or restore.
"""

import logging
import sys
from pathlib import Path
from typing import Any, TextIO

import structlog

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class TeeLogger:
    """Write rendered log lines to a stream and, if set, a log file."""

    def __init__(self, stream: TextIO | None = None, log_file: Path | None = None):
        self._stream = stream or sys.stdout
        self._log_file = Path(log_file) if log_file else None
        self._file_failed = False

    def msg(self, message: str) -> None:
        try:
            print(message, file=self._stream, flush=True)
        except (OSError, ValueError):
            pass
        if self._log_file is None or self._file_failed:
            return
        try:
            with self._log_file.open("a", encoding="utf-8") as handle:
                handle.write(message + "\n")
        except OSError as e:
            self._file_failed = True
            print(f"WARNING: cannot write log file {self._log_file}: {e}", file=sys.stderr)

    log = debug = info = warning = warn = error = critical = exception = fatal = msg


class TeeLoggerFactory:
    def __init__(self, stream: TextIO | None = None, log_file: Path | None = None):
        self._logger = TeeLogger(stream=stream, log_file=log_file)

    def __call__(self, *args: Any) -> TeeLogger:
        return self._logger


def configure_logging(
    log_file: Path | None = None,
    level: int = logging.INFO,
    stream: TextIO | None = None,
) -> None:
    """
    Configure structlog for a tarbak run.

    Args:
        log_file: File to append log lines to (None logs to the console only)
        level: Minimum level to emit
        stream: Console stream (default: stdout)
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt=TIMESTAMP_FORMAT, utc=False),
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=TeeLoggerFactory(stream=stream, log_file=log_file),
        cache_logger_on_first_use=False,
    )
