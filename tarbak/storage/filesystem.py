# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Tarbak Filesystem Probe - Directory existence and free space queries.

The restore pipeline only needs two facts from the filesystem: whether a
directory exists and how many bytes are available on the filesystem that
holds it. Both sit behind the FilesystemProbe protocol so the engines can
be exercised against in-memory probes in tests.
"""

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import structlog

from tarbak.exceptions import FilesystemQueryError, PathNotFoundError

logger = structlog.get_logger()


class FilesystemProbe(Protocol):
    """Capability interface for filesystem queries."""

    def is_dir(self, path: Path) -> bool:
        ...

    def is_file(self, path: Path) -> bool:
        ...

    def available_bytes(self, path: Path) -> int:
        ...


@dataclass(frozen=True)
class SpaceReport:
    """Free space on the restore target versus the estimated requirement."""

    available_bytes: int
    required_bytes: int

    @property
    def sufficient(self) -> bool:
        return sufficient_space(self.required_bytes, self.available_bytes)

    @property
    def shortfall_bytes(self) -> int:
        return max(self.required_bytes - self.available_bytes, 0)


def sufficient_space(required: int, available: int) -> bool:
    """
    Check whether ``available`` bytes can hold ``required`` bytes.

    Equal is sufficient. Both operands must be exact byte counts; no
    allowance is made for block rounding or filesystem overhead.
    """
    return available >= required


class LocalFilesystem:
    """FilesystemProbe backed by the local operating system."""

    def is_dir(self, path: Path) -> bool:
        return Path(path).is_dir()

    def is_file(self, path: Path) -> bool:
        return Path(path).is_file()

    def available_bytes(self, path: Path) -> int:
        """
        Get the bytes available to unprivileged users on the filesystem
        holding ``path``.

        Raises:
            PathNotFoundError: If path is not an existing directory
            FilesystemQueryError: If the space query fails
        """
        path = Path(path)
        if not path.is_dir():
            raise PathNotFoundError(
                f"Directory {path} does not exist",
                details={"path": str(path)},
            )

        try:
            usage = shutil.disk_usage(path)
        except OSError as e:
            raise FilesystemQueryError(
                f"Failed to query available space: {e}",
                details={"path": str(path)},
            ) from e

        logger.debug("available_space_queried", path=str(path), available=usage.free)
        return int(usage.free)
