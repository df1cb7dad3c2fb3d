# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Advisory run lock for a backup directory.

Holding the lock for a whole create-or-restore sequence keeps two runs
against the same backup directory from interleaving.
"""

import fcntl
import os
from pathlib import Path

import structlog

from tarbak.exceptions import LockHeldError, LockUnavailableError

logger = structlog.get_logger()


class RunLock:
    """Non-blocking exclusive flock on a lock file."""

    def __init__(self, path: Path):
        self.path = Path(path)
        self._fd: int | None = None

    def acquire(self) -> None:
        """
        Take the lock without waiting.

        Raises:
            LockHeldError: If another run holds the lock
            LockUnavailableError: If the lock file cannot be opened, e.g. on
                read-only media
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_CREAT | os.O_RDWR, 0o644)
        except OSError as e:
            raise LockUnavailableError(
                f"Cannot open lock file {self.path}: {e.strerror or e}",
                details={"lock": str(self.path), "errno": e.errno},
            ) from e
        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as e:
            os.close(fd)
            raise LockHeldError(
                f"Another run holds the lock {self.path}",
                details={"lock": str(self.path)},
            ) from e
        self._fd = fd
        logger.debug("run_lock_acquired", lock=str(self.path))

    def release(self) -> None:
        if self._fd is None:
            return
        # The lock file stays so every run locks the same inode
        fcntl.flock(self._fd, fcntl.LOCK_UN)
        os.close(self._fd)
        self._fd = None
        logger.debug("run_lock_released", lock=str(self.path))

    def __enter__(self) -> "RunLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()
