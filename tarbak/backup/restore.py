# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Tarbak Restore Manager - Size estimation, space checks and extraction.

These are the steps the restore pipeline runs after selecting the latest
archive. Every check happens before extraction, so a restore that cannot
succeed fails without touching the target directory.
"""

from pathlib import Path

import structlog

from tarbak.exceptions import (
    ArchiveReadError,
    ArchiveUnreadableError,
    ExtractionFailedError,
    InsufficientSpaceError,
)
from tarbak.sizes import format_size
from tarbak.storage.archiver import ARCHIVE_ERRORS, Archiver, TarArchiver
from tarbak.storage.filesystem import FilesystemProbe, LocalFilesystem, SpaceReport

logger = structlog.get_logger()


def estimate_extracted_size(
    archive_path: Path,
    archiver: Archiver | None = None,
    filesystem: FilesystemProbe | None = None,
) -> int:
    """
    Estimate the disk space needed to extract an archive.

    Sums the member sizes recorded in the archive index. Filesystem block
    rounding is ignored, so this is an approximation.

    Args:
        archive_path: Path to the archive
        archiver: Archiver used to probe and list the archive

    Returns:
        Total member size in bytes

    Raises:
        ArchiveUnreadableError: If the file is not a tar archive or its
            index cannot be read
    """
    archiver = archiver or TarArchiver()
    filesystem = filesystem or LocalFilesystem()

    if not filesystem.is_file(archive_path):
        raise ArchiveUnreadableError(
            f"Backup file {archive_path} does not exist",
            details={"archive": str(archive_path)},
        )

    try:
        if not archiver.probe(archive_path):
            raise ArchiveUnreadableError(
                f"Backup file {archive_path} is not a tar archive",
                details={"archive": str(archive_path)},
            )
        members = archiver.members(archive_path)
    except ArchiveReadError as e:
        raise ArchiveUnreadableError(
            f"Failed to read backup file: {e.message}",
            details={"archive": str(archive_path)},
        ) from e

    return sum(member.size for member in members)


def check_target_space(
    target_dir: Path,
    required_bytes: int,
    filesystem: FilesystemProbe | None = None,
) -> SpaceReport:
    """
    Compare the space available on the target filesystem against the
    estimated requirement.

    Returns:
        SpaceReport for logging

    Raises:
        PathNotFoundError: If target_dir is not an existing directory
        FilesystemQueryError: If the space query fails
        InsufficientSpaceError: If available < required
    """
    filesystem = filesystem or LocalFilesystem()
    available = filesystem.available_bytes(target_dir)
    report = SpaceReport(available_bytes=available, required_bytes=required_bytes)

    logger.info(
        "target_space_available",
        target_dir=str(target_dir),
        available=available,
        available_human=format_size(available),
    )

    if not report.sufficient:
        raise InsufficientSpaceError(
            f"Not enough space in {target_dir} to extract the backup",
            details={
                "required": required_bytes,
                "available": available,
                "shortfall": report.shortfall_bytes,
            },
        )

    return report


def extract_archive(
    archive_path: Path,
    target_dir: Path,
    archiver: Archiver | None = None,
    filesystem: FilesystemProbe | None = None,
) -> None:
    """
    Extract an archive into an existing target directory.

    The archive itself is only read. A failure part-way through leaves
    whatever was already extracted in place.

    Raises:
        ExtractionFailedError: If the target is missing or extraction fails
    """
    archiver = archiver or TarArchiver()
    filesystem = filesystem or LocalFilesystem()

    if not filesystem.is_dir(target_dir):
        raise ExtractionFailedError(
            f"Directory {target_dir} does not exist",
            details={"target_dir": str(target_dir)},
        )

    try:
        archiver.extract(archive_path, target_dir)
    except (ArchiveReadError, *ARCHIVE_ERRORS) as e:
        raise ExtractionFailedError(
            f"Failed to extract backup: {e}",
            details={"archive": str(archive_path), "target_dir": str(target_dir)},
        ) from e
