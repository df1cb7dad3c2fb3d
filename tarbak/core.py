# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Tarbak Core - Backup and restore orchestrators.

run_backup() and run_restore() compose the archive, verification,
retention and space-check components in a fixed order. Each stage that
completes is recorded; the first failure stops the run and the exception
propagates to the caller with the last completed stage in its details.
"""

import contextlib
from dataclasses import dataclass, field
from datetime import datetime, UTC
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List

import structlog

from tarbak.backup.manager import create_archive, prune_old_backups
from tarbak.backup.naming import latest_archive
from tarbak.backup.restore import check_target_space, estimate_extracted_size, extract_archive
from tarbak.backup.verify import VerificationResult, verify_archive
from tarbak.config import BackupConfig
from tarbak.exceptions import (
    ArchiveCreationError,
    DirectoryNotFoundError,
    LockUnavailableError,
    ExtractionFailedError,
    SourceMissingError,
    TarbakError,
    VerificationFailedError,
)
from tarbak.lock import RunLock
from tarbak.sizes import format_size
from tarbak.storage.archiver import Archiver, TarArchiver
from tarbak.storage.filesystem import FilesystemProbe, LocalFilesystem

logger = structlog.get_logger()


class BackupStage(str, Enum):
    """Stages of a backup run."""

    IDLE = "idle"
    SOURCE_VALIDATED = "source_validated"
    ARCHIVED = "archived"
    VERIFIED = "verified"
    PRUNED = "pruned"
    DONE = "done"
    FAILED = "failed"


class RestoreStage(str, Enum):
    """Stages of a restore run."""

    IDLE = "idle"
    SELECTED = "selected"
    SIZE_ESTIMATED = "size_estimated"
    SPACE_CHECKED = "space_checked"
    EXTRACTED = "extracted"
    DONE = "done"
    FAILED = "failed"


@dataclass
class BackupResult:
    """Result of a backup run."""

    archive_name: str
    archive_path: Path
    size_bytes: int
    verification: VerificationResult | None
    stages: List[BackupStage]
    duration_seconds: float
    pruned: List[str] = field(default_factory=list)
    prune_failures: Dict[str, str] = field(default_factory=dict)

    @property
    def stage(self) -> BackupStage:
        return self.stages[-1]


@dataclass
class RestoreResult:
    """Result of a restore run."""

    archive_name: str
    archive_path: Path
    target_dir: Path
    required_bytes: int
    available_bytes: int
    stages: List[RestoreStage]
    duration_seconds: float

    @property
    def stage(self) -> RestoreStage:
        return self.stages[-1]


@contextlib.contextmanager
def _run_lock(config: BackupConfig, *, read_only: bool = False) -> Iterator[None]:
    """
    Hold the backup directory lock for the enclosed steps.

    A read-only run (restore) goes ahead without the lock when the lock
    file cannot be opened, as on read-only backup media. A held lock
    always fails the run.
    """
    if not config.use_lock:
        yield
        return

    lock = RunLock(config.lock_path)
    try:
        lock.acquire()
    except LockUnavailableError as e:
        if not read_only:
            raise
        logger.warning("run_lock_skipped", lock=str(config.lock_path), error=e.message)

    # release() is a no-op when the lock was skipped
    try:
        yield
    finally:
        lock.release()


def _fail(error: TarbakError, stage: Enum, event: str) -> None:
    """Record the failing stage on the error and log the failure."""
    error.details.setdefault("stage", stage.value)
    logger.error(
        event,
        stage=stage.value,
        reason=error.reason.value,
        error=error.message,
    )


def run_backup(
    config: BackupConfig,
    *,
    archiver: Archiver | None = None,
    filesystem: FilesystemProbe | None = None,
    now: datetime | None = None,
) -> BackupResult:
    """
    Run a complete backup.

    This is the main entry point for creating backups. It:
    1. Validates that the source directory exists
    2. Archives the source into the backup directory
    3. Verifies the new archive (if config.verify)
    4. Prunes archives beyond config.keep_count (if > 0)

    Pruning only runs once the new archive exists and, when requested,
    has verified, so a failed backup never removes older ones.

    Args:
        config: Tarbak configuration
        archiver: Archiver implementation (default: TarArchiver)
        filesystem: Filesystem probe (default: LocalFilesystem)
        now: Timestamp used in the archive name (default: local time)

    Returns:
        BackupResult with run details

    Raises:
        TarbakError: On the first failed stage
    """
    archiver = archiver or TarArchiver()
    filesystem = filesystem or LocalFilesystem()
    timestamp = now or datetime.now()
    start_time = datetime.now(UTC)
    stages: List[BackupStage] = [BackupStage.IDLE]

    logger.info(
        "backup_started",
        source_dir=str(config.source_dir),
        backup_dir=str(config.backup_dir),
        prefix=config.prefix,
    )

    try:
        # Step 1: Source must exist before anything is written
        if not filesystem.is_dir(config.source_dir):
            raise SourceMissingError(
                f"Source directory {config.source_dir} does not exist",
                details={"source_dir": str(config.source_dir)},
            )
        stages.append(BackupStage.SOURCE_VALIDATED)

        try:
            config.backup_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArchiveCreationError(
                f"Failed to create backup directory: {e}",
                details={"backup_dir": str(config.backup_dir)},
            ) from e

        with _run_lock(config):
            # Step 2: Archive
            created = create_archive(
                config.source_dir,
                config.backup_dir,
                config.prefix,
                timestamp,
                exclude_names=config.exclude_names,
                archiver=archiver,
            )
            stages.append(BackupStage.ARCHIVED)

            logger.info(
                "backup_created",
                archive=created.name,
                backup_dir=str(config.backup_dir),
            )
            logger.info(
                "backup_size",
                archive=created.name,
                size=created.size_bytes,
                size_human=format_size(created.size_bytes),
            )

            # Step 3: Verify
            verification = None
            if config.verify:
                verification = verify_archive(
                    created.path, archiver=archiver, filesystem=filesystem
                )
                if verification is not VerificationResult.VALID:
                    # An unverifiable archive must not be picked up by restore
                    created.path.unlink(missing_ok=True)
                    raise VerificationFailedError(
                        f"Backup {created.name} is not valid",
                        details={"archive": created.name, "result": verification.value},
                    )
                stages.append(BackupStage.VERIFIED)
                logger.info("backup_verified", archive=created.name)

            # Step 4: Prune
            pruned: List[str] = []
            prune_failures: Dict[str, str] = {}
            if config.keep_count > 0:
                prune = prune_old_backups(
                    config.backup_dir, config.prefix, config.keep_count
                )
                pruned = prune.removed
                prune_failures = prune.failed
                stages.append(BackupStage.PRUNED)
                if prune_failures:
                    logger.warning(
                        "backup_pruning_incomplete",
                        failed=sorted(prune_failures),
                    )

    except TarbakError as e:
        _fail(e, stages[-1], "backup_failed")
        raise

    stages.append(BackupStage.DONE)
    duration = (datetime.now(UTC) - start_time).total_seconds()

    logger.info(
        "backup_completed",
        archive=created.name,
        size=created.size_bytes,
        pruned=len(pruned),
        duration=duration,
    )

    return BackupResult(
        archive_name=created.name,
        archive_path=created.path,
        size_bytes=created.size_bytes,
        verification=verification,
        stages=stages,
        duration_seconds=duration,
        pruned=pruned,
        prune_failures=prune_failures,
    )


def run_restore(
    config: BackupConfig,
    *,
    archiver: Archiver | None = None,
    filesystem: FilesystemProbe | None = None,
) -> RestoreResult:
    """
    Restore the latest backup into the target directory.

    This is the main entry point for restores. It:
    1. Selects the newest archive for config.prefix
    2. Estimates the extracted size from the archive index
    3. Checks the target filesystem has at least that much space
    4. Extracts the archive into config.target_dir

    Nothing is extracted unless every check before step 4 passed.

    Args:
        config: Tarbak configuration
        archiver: Archiver implementation (default: TarArchiver)
        filesystem: Filesystem probe (default: LocalFilesystem)

    Returns:
        RestoreResult with run details

    Raises:
        TarbakError: On the first failed stage
    """
    archiver = archiver or TarArchiver()
    filesystem = filesystem or LocalFilesystem()
    start_time = datetime.now(UTC)
    stages: List[RestoreStage] = [RestoreStage.IDLE]

    logger.info(
        "restore_started",
        backup_dir=str(config.backup_dir),
        target_dir=str(config.target_dir),
        prefix=config.prefix,
    )

    try:
        if not filesystem.is_dir(config.backup_dir):
            raise DirectoryNotFoundError(
                f"Backup directory {config.backup_dir} does not exist",
                details={"directory": str(config.backup_dir)},
            )

        with _run_lock(config, read_only=True):
            # Step 1: Select
            name = latest_archive(config.backup_dir, config.prefix)
            archive_path = config.backup_dir / name
            stages.append(RestoreStage.SELECTED)
            logger.info("latest_backup_selected", archive=name)

            # Step 2: Estimate
            required = estimate_extracted_size(
                archive_path, archiver=archiver, filesystem=filesystem
            )
            stages.append(RestoreStage.SIZE_ESTIMATED)
            logger.info(
                "restore_size_estimated",
                archive=name,
                required=required,
                required_human=format_size(required),
            )

            # Step 3: Space check
            if not filesystem.is_dir(config.target_dir):
                raise ExtractionFailedError(
                    f"Directory {config.target_dir} does not exist",
                    details={"target_dir": str(config.target_dir)},
                )
            report = check_target_space(config.target_dir, required, filesystem=filesystem)
            stages.append(RestoreStage.SPACE_CHECKED)

            # Step 4: Extract
            extract_archive(
                archive_path, config.target_dir, archiver=archiver, filesystem=filesystem
            )
            stages.append(RestoreStage.EXTRACTED)
            logger.info(
                "backup_restored",
                archive=name,
                target_dir=str(config.target_dir),
            )

    except TarbakError as e:
        _fail(e, stages[-1], "restore_failed")
        raise

    stages.append(RestoreStage.DONE)
    duration = (datetime.now(UTC) - start_time).total_seconds()

    logger.info("restore_completed", archive=name, duration=duration)

    return RestoreResult(
        archive_name=name,
        archive_path=archive_path,
        target_dir=config.target_dir,
        required_bytes=report.required_bytes,
        available_bytes=report.available_bytes,
        stages=stages,
        duration_seconds=duration,
    )
