# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Tarbak Exceptions - Custom exceptions for the tarbak package.

Every exception carries a machine-readable ``reason`` so the orchestrators
and the CLI can report which precondition, integrity or resource check
stopped the run.
"""

from enum import Enum


class FailureReason(str, Enum):
    """Why a backup or restore run ended in the failed state."""

    CONFIGURATION = "configuration"
    LOCK_HELD = "lock_held"
    LOCK_UNAVAILABLE = "lock_unavailable"
    SOURCE_MISSING = "source_missing"
    DIRECTORY_NOT_FOUND = "directory_not_found"
    PATH_NOT_FOUND = "path_not_found"
    FILESYSTEM_QUERY_FAILED = "filesystem_query_failed"
    NO_BACKUPS_FOUND = "no_backups_found"
    ARCHIVE_EXISTS = "archive_exists"
    ARCHIVE_CREATION_FAILED = "archive_creation_failed"
    VERIFICATION_FAILED = "verification_failed"
    ARCHIVE_UNREADABLE = "archive_unreadable"
    INSUFFICIENT_SPACE = "insufficient_space"
    EXTRACTION_FAILED = "extraction_failed"
    UNKNOWN = "unknown"


class TarbakError(Exception):
    """Base exception for all tarbak errors."""

    reason: FailureReason = FailureReason.UNKNOWN

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(TarbakError):
    """Raised when configuration is invalid."""

    reason = FailureReason.CONFIGURATION


class LockHeldError(TarbakError):
    """Raised when another run holds the backup directory lock."""

    reason = FailureReason.LOCK_HELD


class LockUnavailableError(TarbakError):
    """Raised when the lock file cannot be created or opened."""

    reason = FailureReason.LOCK_UNAVAILABLE


class PreconditionError(TarbakError):
    """Raised when a required directory or path is missing."""

    pass


class SelectionError(TarbakError):
    """Raised when no archive can be selected for restore."""

    pass


class SourceMissingError(PreconditionError):
    """Raised when the source directory to back up does not exist."""

    reason = FailureReason.SOURCE_MISSING


class DirectoryNotFoundError(PreconditionError, SelectionError):
    """Raised when the backup directory does not exist."""

    reason = FailureReason.DIRECTORY_NOT_FOUND


class PathNotFoundError(PreconditionError):
    """Raised when a path queried for free space is not a directory."""

    reason = FailureReason.PATH_NOT_FOUND


class NoBackupsFoundError(SelectionError):
    """Raised when the backup directory holds no matching archives."""

    reason = FailureReason.NO_BACKUPS_FOUND


class FilesystemQueryError(TarbakError):
    """Raised when the filesystem cannot report available space."""

    reason = FailureReason.FILESYSTEM_QUERY_FAILED


class ArchiveReadError(TarbakError):
    """Raised by the archiver when an archive cannot be probed or listed."""

    reason = FailureReason.ARCHIVE_UNREADABLE


class BackupError(TarbakError):
    """Raised when backup operations fail."""

    reason = FailureReason.ARCHIVE_CREATION_FAILED


class ArchiveExistsError(BackupError):
    """Raised when the archive name for this run is already taken."""

    reason = FailureReason.ARCHIVE_EXISTS


class ArchiveCreationError(BackupError):
    """Raised when writing the archive fails."""

    reason = FailureReason.ARCHIVE_CREATION_FAILED


class VerificationFailedError(BackupError):
    """Raised when a freshly created archive does not verify as valid."""

    reason = FailureReason.VERIFICATION_FAILED


class RestoreError(TarbakError):
    """Raised when restore operations fail."""

    reason = FailureReason.EXTRACTION_FAILED


class ArchiveUnreadableError(RestoreError):
    """Raised when the selected archive cannot be probed or listed."""

    reason = FailureReason.ARCHIVE_UNREADABLE


class InsufficientSpaceError(RestoreError):
    """Raised when the target filesystem cannot hold the extracted archive."""

    reason = FailureReason.INSUFFICIENT_SPACE


class ExtractionFailedError(RestoreError):
    """Raised when extracting into the target directory fails."""

    reason = FailureReason.EXTRACTION_FAILED
