# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Tarbak Backup Manager - Backup lifecycle management.

This module handles writing archives to the backup directory, pruning
old archives beyond the retention count, and reporting backup storage
statistics.
"""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List

import structlog

from tarbak.backup.naming import archive_name, archive_pattern, list_archives
from tarbak.config import LOCK_FILENAME
from tarbak.exceptions import ArchiveCreationError, ArchiveExistsError
from tarbak.storage.archiver import ARCHIVE_ERRORS, Archiver, TarArchiver

logger = structlog.get_logger()

# Suffix of archives still being written
TEMP_SUFFIX = ".tmp"


@dataclass
class CreatedArchive:
    """An archive written to the backup directory."""

    name: str
    path: Path
    size_bytes: int


@dataclass
class PruneResult:
    """Result of pruning old archives."""

    removed: List[str]
    kept: List[str]
    failed: Dict[str, str] = field(default_factory=dict)
    freed_bytes: int = 0
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed


def create_archive(
    source_dir: Path,
    backup_dir: Path,
    prefix: str,
    timestamp: datetime,
    *,
    exclude_names: Iterable[str] = ("tmp",),
    archiver: Archiver | None = None,
) -> CreatedArchive:
    """
    Archive the contents of ``source_dir`` into the backup directory.

    The archive is written to a temporary name and renamed into place only
    once complete, so an interrupted run never leaves a file that matches
    the archive pattern. An existing archive with the same name is never
    overwritten.

    Args:
        source_dir: Directory to archive
        backup_dir: Directory receiving the archive (must exist)
        prefix: Archive name prefix
        timestamp: Time used in the archive name
        exclude_names: Entry names left out at any depth
        archiver: Archiver used to write the archive

    Returns:
        CreatedArchive with the exact stored size
    """
    archiver = archiver or TarArchiver()
    name = archive_name(prefix, timestamp)
    archive_path = backup_dir / name
    temp_path = backup_dir / f"{name}{TEMP_SUFFIX}"

    if archive_path.exists():
        raise ArchiveExistsError(
            f"Backup {name} already exists in {backup_dir}",
            details={"archive": str(archive_path)},
        )

    # Never archive the backup directory into itself
    exclude_paths = [archive_path, temp_path, backup_dir / LOCK_FILENAME]
    if backup_dir.resolve() == source_dir.resolve():
        # Archives of every prefix, and temp files left by interrupted runs
        any_archive = archive_pattern()
        exclude_paths.extend(
            path
            for path in backup_dir.iterdir()
            if any_archive.fullmatch(path.name.removesuffix(TEMP_SUFFIX))
        )
    else:
        exclude_paths.append(backup_dir)

    try:
        archiver.create(
            source_dir,
            temp_path,
            exclude_paths=exclude_paths,
            exclude_names=exclude_names,
        )
        # Rename to final path (atomic on most filesystems)
        temp_path.rename(archive_path)
    except ARCHIVE_ERRORS as e:
        temp_path.unlink(missing_ok=True)
        raise ArchiveCreationError(
            f"Failed to create archive: {e}",
            details={"archive": str(archive_path), "source_dir": str(source_dir)},
        ) from e

    size_bytes = archive_path.stat().st_size

    logger.debug(
        "archive_written",
        archive=str(archive_path),
        size=size_bytes,
    )

    return CreatedArchive(name=name, path=archive_path, size_bytes=size_bytes)


def prune_old_backups(
    backup_dir: Path,
    prefix: str,
    keep: int,
    dry_run: bool = False,
) -> PruneResult:
    """
    Delete all but the ``keep`` newest archives for ``prefix``.

    A deletion that fails is recorded and logged; the remaining deletions
    still run.

    Args:
        backup_dir: Directory holding the archives
        prefix: Archive name prefix
        keep: Number of newest archives to keep
        dry_run: If True, only report what would be deleted

    Returns:
        PruneResult with removed, kept and failed archive names
    """
    if keep < 0:
        raise ValueError(f"keep must be >= 0, got {keep}")

    names = list_archives(backup_dir, prefix)
    kept = names[:keep]
    candidates = names[keep:]

    if not candidates:
        logger.info("no_old_backups_to_remove", kept=len(kept))
        return PruneResult(removed=[], kept=kept, dry_run=dry_run)

    removed: List[str] = []
    failed: Dict[str, str] = {}
    freed_bytes = 0

    # Oldest first
    for name in reversed(candidates):
        path = backup_dir / name
        try:
            size = path.stat().st_size
            if not dry_run:
                path.unlink()
            removed.append(name)
            freed_bytes += size
            logger.info(
                "old_backup_removed" if not dry_run else "old_backup_would_remove",
                archive=name,
                size=size,
            )
        except OSError as e:
            failed[name] = str(e)
            logger.warning("old_backup_remove_failed", archive=name, error=str(e))

    logger.info(
        "backup_pruning_complete",
        removed=len(removed),
        failed=len(failed),
        kept=len(kept),
        freed_bytes=freed_bytes,
        dry_run=dry_run,
    )

    return PruneResult(
        removed=removed,
        kept=kept,
        failed=failed,
        freed_bytes=freed_bytes,
        dry_run=dry_run,
    )


def get_backup_stats(backup_dir: Path, prefix: str) -> dict:
    """
    Get statistics about the archives for ``prefix``.

    Args:
        backup_dir: Directory holding the archives
        prefix: Archive name prefix

    Returns:
        Dict with archive count, sizes and newest/oldest names
    """
    names = list_archives(backup_dir, prefix)
    archives = []
    total_bytes = 0

    for name in names:
        size = (backup_dir / name).stat().st_size
        total_bytes += size
        archives.append({"name": name, "size": size})

    return {
        "archive_count": len(names),
        "total_bytes": total_bytes,
        "newest": names[0] if names else None,
        "oldest": names[-1] if names else None,
        "archives": archives,
    }
