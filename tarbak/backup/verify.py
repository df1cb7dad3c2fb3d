# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Structural archive verification.

Verification checks that a file exists, that its content is a tar-family
archive, and that its full member index reads without decompression or
checksum errors. Member payloads are not extracted.
"""

from enum import Enum
from pathlib import Path

import structlog

from tarbak.exceptions import ArchiveReadError
from tarbak.storage.archiver import Archiver, TarArchiver
from tarbak.storage.filesystem import FilesystemProbe, LocalFilesystem

logger = structlog.get_logger()


class VerificationResult(str, Enum):
    """Outcome of verifying an archive."""

    VALID = "valid"
    NOT_FOUND = "not_found"
    NOT_AN_ARCHIVE = "not_an_archive"
    CORRUPT = "corrupt"


def verify_archive(
    path: Path,
    *,
    archiver: Archiver | None = None,
    filesystem: FilesystemProbe | None = None,
) -> VerificationResult:
    """
    Verify the structure of an archive, stopping at the first failed check.

    Args:
        path: Path to the archive
        archiver: Archiver used to probe and list the archive
        filesystem: Probe used for the existence check

    Returns:
        VerificationResult
    """
    archiver = archiver or TarArchiver()
    filesystem = filesystem or LocalFilesystem()
    path = Path(path)

    if not filesystem.is_file(path):
        logger.error("archive_not_found", archive=str(path))
        return VerificationResult.NOT_FOUND

    try:
        if not archiver.probe(path):
            logger.error("archive_not_tar", archive=str(path))
            return VerificationResult.NOT_AN_ARCHIVE
        members = archiver.members(path)
    except ArchiveReadError as e:
        logger.error("archive_corrupt", archive=str(path), error=e.message)
        return VerificationResult.CORRUPT

    logger.info("archive_valid", archive=path.name, members=len(members))
    return VerificationResult.VALID
