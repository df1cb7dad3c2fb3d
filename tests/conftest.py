# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Test fixtures for Tarbak tests.

Provides temporary directory trees, configuration helpers and
filesystem probes reporting a fixed amount of free space.
"""

import errno
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Callable, Generator

import pytest
import structlog

from tarbak.config import LOCK_FILENAME, BackupConfig
from tarbak.exceptions import PathNotFoundError
from tarbak.storage.filesystem import LocalFilesystem

ENV_VARS = (
    "SOURCE_DIR",
    "BACKUP_DIR",
    "TARGET_DIR",
    "BACKUP_PREFIX",
    "LOG_TO_FILE",
    "LOG_FILE",
    "BACKUP_KEEP",
    "BACKUP_VERIFY",
)

# Three files, 10 KiB in total
SOURCE_FILES = {
    "a.txt": b"a" * 4096,
    "b.txt": b"b" * 4096,
    "sub/c.txt": b"c" * 2048,
}
SOURCE_BYTES = sum(len(data) for data in SOURCE_FILES.values())


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Isolate tests from tarbak environment variables and logging setup."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    structlog.reset_defaults()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def source_tree(temp_dir: Path) -> Path:
    """Create a source directory with three files (10 KiB)."""
    source = temp_dir / "source"
    for rel, data in SOURCE_FILES.items():
        path = source / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
    return source


@pytest.fixture
def target_dir(temp_dir: Path) -> Path:
    """Create an empty restore target directory."""
    target = temp_dir / "target"
    target.mkdir()
    return target


@pytest.fixture
def test_config(temp_dir: Path, source_tree: Path, target_dir: Path) -> BackupConfig:
    """Create a test configuration without a log file."""
    return BackupConfig(
        source_dir=source_tree,
        backup_dir=temp_dir / "backups",
        target_dir=target_dir,
        prefix="test",
        log_file=None,
    )


@pytest.fixture
def timestamps() -> list[datetime]:
    """Distinct, increasing archive timestamps."""
    return [
        datetime(2024, 6, 7, 16, 19, 50),
        datetime(2024, 6, 7, 16, 20, 5),
        datetime(2024, 6, 8, 9, 0, 0),
        datetime(2024, 12, 31, 23, 59, 59),
    ]


class FixedSpaceFilesystem(LocalFilesystem):
    """Local filesystem probe that reports a fixed amount of free space."""

    def __init__(self, available: int):
        self.available = available
        self.queried: list[Path] = []

    def available_bytes(self, path: Path) -> int:
        if not Path(path).is_dir():
            raise PathNotFoundError(f"Directory {path} does not exist")
        self.queried.append(Path(path))
        return self.available


@pytest.fixture
def fixed_space() -> Callable[[int], FixedSpaceFilesystem]:
    """Factory for filesystem probes with a given amount of free space."""
    return FixedSpaceFilesystem


def _make_archive_files(directory: Path, names: list[str]) -> None:
    directory.mkdir(parents=True, exist_ok=True)
    for name in names:
        (directory / name).write_bytes(b"placeholder " + name.encode())


@pytest.fixture
def archive_files() -> Callable[[Path, list[str]], None]:
    """Factory creating placeholder files named like archives."""
    return _make_archive_files


@pytest.fixture
def unopenable_lock(monkeypatch: pytest.MonkeyPatch) -> Callable[[], None]:
    """Factory making lock files fail to open, as on read-only media."""
    real_open = os.open

    def read_only_open(path, flags, *args, **kwargs):
        if os.fspath(path).endswith(LOCK_FILENAME):
            raise OSError(errno.EROFS, "Read-only file system", os.fspath(path))
        return real_open(path, flags, *args, **kwargs)

    def activate() -> None:
        monkeypatch.setattr(os, "open", read_only_open)

    return activate
