# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Archive naming and selection.

Archive names embed a zero-padded, fixed-width timestamp, so sorting names
lexicographically sorts archives chronologically.
"""

import re
from datetime import datetime
from pathlib import Path
from typing import List

from tarbak.exceptions import DirectoryNotFoundError, NoBackupsFoundError

ARCHIVE_SUFFIX = ".tar.gz"
TIMESTAMP_FORMAT = "%Y-%m-%d_%H%M%S"

# Matches the timestamp TIMESTAMP_FORMAT produces
_TIMESTAMP_PATTERN = r"\d{4}-\d{2}-\d{2}_\d{6}"


def archive_name(prefix: str, timestamp: datetime) -> str:
    """
    Build the archive name for a backup taken at ``timestamp``.

    Example:
        >>> archive_name("backup", datetime(2024, 6, 7, 16, 19, 50))
        'backup-2024-06-07_161950.tar.gz'
    """
    return f"{prefix}-{timestamp.strftime(TIMESTAMP_FORMAT)}{ARCHIVE_SUFFIX}"


def archive_pattern(prefix: str | None = None) -> re.Pattern:
    """
    Compile the pattern of archive names for ``prefix``.

    Without a prefix the pattern matches the archive of any prefix.
    """
    head = re.escape(prefix) if prefix is not None else r".+"
    return re.compile(f"{head}-{_TIMESTAMP_PATTERN}{re.escape(ARCHIVE_SUFFIX)}")


def list_archives(directory: Path, prefix: str) -> List[str]:
    """
    List the archives of ``prefix`` in ``directory``.

    Candidates are globbed with ``<prefix>*.tar.gz`` and kept only if the
    whole name is ``<prefix>-<timestamp>.tar.gz``, so the archives of a
    longer prefix such as ``backup-db`` never join the set of ``backup``.
    Only regular files directly inside the directory are considered.

    Returns:
        Archive names sorted newest first

    Raises:
        DirectoryNotFoundError: If the directory does not exist
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise DirectoryNotFoundError(
            f"Backup directory {directory} does not exist",
            details={"directory": str(directory)},
        )

    pattern = archive_pattern(prefix)
    names = [
        path.name
        for path in directory.glob(f"{prefix}*{ARCHIVE_SUFFIX}")
        if pattern.fullmatch(path.name) and path.is_file()
    ]
    return sorted(names, reverse=True)


def latest_archive(directory: Path, prefix: str) -> str:
    """
    Find the most recent archive for ``prefix``.

    Raises:
        DirectoryNotFoundError: If the directory does not exist
        NoBackupsFoundError: If no archive matches the prefix
    """
    names = list_archives(directory, prefix)
    if not names:
        raise NoBackupsFoundError(
            f"No backup files found in {directory}",
            details={"directory": str(directory), "prefix": prefix},
        )
    return names[0]
