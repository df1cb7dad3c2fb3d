# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Critical Safety Tests for Tarbak.

These tests verify the core safety guarantees:
1. Space gating - Nothing is extracted unless the target has room
2. No destructive failures - A failed backup NEVER prunes older archives
3. No bad archives - An archive that fails verification is never kept
4. No overwrites - An existing archive is NEVER replaced
5. Atomic creation - An interrupted backup leaves no archive behind
6. Mutual exclusion - Two runs never work the same backup directory at once

These tests MUST pass before any production deployment.
"""

import hashlib
import tarfile
from pathlib import Path

import pytest

from tarbak.backup.naming import archive_name, list_archives
from tarbak.config import BackupConfig
from tarbak.core import run_backup, run_restore
from tarbak.exceptions import (
    ArchiveCreationError,
    ArchiveExistsError,
    ArchiveUnreadableError,
    ExtractionFailedError,
    InsufficientSpaceError,
    LockHeldError,
    LockUnavailableError,
    SourceMissingError,
    VerificationFailedError,
)
from tarbak.lock import RunLock
from tarbak.storage.archiver import TarArchiver

# Size of the conftest source tree
SOURCE_BYTES = 10 * 1024


class GarbageArchiver(TarArchiver):
    """Archiver whose output is not a tar archive at all."""

    def create(self, source, destination, *, exclude_paths=(), exclude_names=()):
        Path(destination).write_bytes(b"definitely not a tar archive\n" * 64)


class InterruptedArchiver(TarArchiver):
    """Archiver that fails part-way through writing."""

    def create(self, source, destination, *, exclude_paths=(), exclude_names=()):
        Path(destination).write_bytes(b"\x1f\x8b partial")
        raise OSError("No space left on device")


def _digest(path: Path) -> str:
    return hashlib.sha256(path.read_bytes()).hexdigest()


# ============================================================================
# Test 1: SPACE GATING
# ============================================================================

def test_restore_refuses_when_space_is_short_by_one_byte(
    test_config: BackupConfig, target_dir: Path, timestamps, fixed_space
):
    """
    CRITICAL: If available space is below the estimated size, nothing is
    extracted and the target directory is left exactly as it was.
    """
    run_backup(test_config, now=timestamps[0])
    (target_dir / "existing.txt").write_text("keep me")

    filesystem = fixed_space(SOURCE_BYTES - 1)

    with pytest.raises(InsufficientSpaceError) as exc_info:
        run_restore(test_config, filesystem=filesystem)

    assert exc_info.value.details["required"] == SOURCE_BYTES
    assert exc_info.value.details["available"] == SOURCE_BYTES - 1
    assert exc_info.value.details["shortfall"] == 1
    assert exc_info.value.details["stage"] == "size_estimated"
    assert [p.name for p in target_dir.iterdir()] == ["existing.txt"]


def test_restore_proceeds_when_space_is_exactly_enough(
    test_config: BackupConfig, target_dir: Path, timestamps, fixed_space
):
    """Available space equal to the estimate is sufficient."""
    run_backup(test_config, now=timestamps[0])

    result = run_restore(test_config, filesystem=fixed_space(SOURCE_BYTES))

    assert result.required_bytes == SOURCE_BYTES
    assert result.available_bytes == SOURCE_BYTES
    assert (target_dir / "a.txt").exists()


def test_restore_checks_target_exists_before_querying_space(
    test_config: BackupConfig, temp_dir: Path, timestamps, fixed_space
):
    """A missing target fails before any space query or extraction."""
    run_backup(test_config, now=timestamps[0])
    config = test_config.with_updates(target_dir=temp_dir / "missing")
    filesystem = fixed_space(10**12)

    with pytest.raises(ExtractionFailedError):
        run_restore(config, filesystem=filesystem)

    assert filesystem.queried == []
    assert not (temp_dir / "missing").exists()


def test_restore_never_falls_back_to_older_archive(
    test_config: BackupConfig, target_dir: Path, timestamps
):
    """
    CRITICAL: A corrupt latest archive fails the restore; an older valid
    archive is not silently restored instead.
    """
    run_backup(test_config, now=timestamps[0])
    newest = test_config.backup_dir / archive_name("test", timestamps[1])
    newest.write_bytes(b"\x00garbage" * 200)

    with pytest.raises(ArchiveUnreadableError) as exc_info:
        run_restore(test_config)

    assert exc_info.value.details["stage"] == "selected"
    assert list(target_dir.iterdir()) == []


def test_restore_does_not_modify_archive(
    test_config: BackupConfig, timestamps
):
    """Restoring only reads the archive."""
    result = run_backup(test_config, now=timestamps[0])
    before = _digest(result.archive_path)

    run_restore(test_config)

    assert _digest(result.archive_path) == before


# ============================================================================
# Test 2: NO DESTRUCTIVE FAILURES
# ============================================================================

def test_failed_verification_never_prunes(
    test_config: BackupConfig, timestamps, archive_files
):
    """
    CRITICAL: When the new archive fails verification, older archives
    survive even though retention is enabled.
    """
    older = [archive_name("test", t) for t in timestamps[:3]]
    archive_files(test_config.backup_dir, older)
    config = test_config.with_updates(keep_count=1, verify=True)

    with pytest.raises(VerificationFailedError) as exc_info:
        run_backup(config, archiver=GarbageArchiver(), now=timestamps[3])

    assert exc_info.value.details["stage"] == "archived"
    assert sorted(list_archives(config.backup_dir, "test")) == older


def test_missing_source_never_prunes(
    test_config: BackupConfig, temp_dir: Path, timestamps, archive_files
):
    """A missing source fails before anything is written or removed."""
    older = [archive_name("test", t) for t in timestamps[:3]]
    archive_files(test_config.backup_dir, older)
    config = test_config.with_updates(source_dir=temp_dir / "gone", keep_count=1)

    with pytest.raises(SourceMissingError) as exc_info:
        run_backup(config, now=timestamps[3])

    assert exc_info.value.details["stage"] == "idle"
    assert sorted(list_archives(config.backup_dir, "test")) == older


# ============================================================================
# Test 3: NO BAD ARCHIVES
# ============================================================================

def test_unverifiable_archive_is_removed(
    test_config: BackupConfig, timestamps
):
    """
    CRITICAL: An archive that fails verification is deleted so a later
    restore cannot select it.
    """
    config = test_config.with_updates(verify=True)

    with pytest.raises(VerificationFailedError):
        run_backup(config, archiver=GarbageArchiver(), now=timestamps[0])

    assert list_archives(config.backup_dir, "test") == []


# ============================================================================
# Test 4: NO OVERWRITES
# ============================================================================

def test_existing_archive_is_never_overwritten(
    test_config: BackupConfig, timestamps, archive_files
):
    """Two backups in the same second cannot replace each other."""
    name = archive_name("test", timestamps[0])
    archive_files(test_config.backup_dir, [name])
    existing = test_config.backup_dir / name
    before = _digest(existing)

    with pytest.raises(ArchiveExistsError):
        run_backup(test_config, now=timestamps[0])

    assert _digest(existing) == before


# ============================================================================
# Test 5: ATOMIC CREATION
# ============================================================================

def test_interrupted_backup_leaves_no_archive(
    test_config: BackupConfig, timestamps
):
    """
    CRITICAL: A backup that fails while writing leaves neither an archive
    nor a partial temporary file in the backup directory.
    """
    with pytest.raises(ArchiveCreationError):
        run_backup(test_config, archiver=InterruptedArchiver(), now=timestamps[0])

    leftovers = [p.name for p in test_config.backup_dir.iterdir() if not p.name.startswith(".")]
    assert leftovers == []


def test_backup_dir_inside_source_is_not_archived(
    test_config: BackupConfig, source_tree: Path, timestamps
):
    """Archives never contain the backup directory or earlier archives."""
    config = test_config.with_updates(backup_dir=source_tree / "backups")

    run_backup(config, now=timestamps[0])
    second = run_backup(config, now=timestamps[1])

    with tarfile.open(second.archive_path, "r:gz") as tar:
        names = tar.getnames()
    assert not any(name.endswith(".tar.gz") for name in names)
    assert not any("backups" in Path(name).parts for name in names)
    assert "./a.txt" in names


def test_backup_dir_equal_to_source_skips_archives(
    test_config: BackupConfig, source_tree: Path, timestamps
):
    """Backing up into the source directory itself skips existing archives."""
    config = test_config.with_updates(backup_dir=source_tree)

    run_backup(config, now=timestamps[0])
    second = run_backup(config, now=timestamps[1])

    with tarfile.open(second.archive_path, "r:gz") as tar:
        names = tar.getnames()
    assert not any(name.endswith(".tar.gz") for name in names)
    assert not any(name.endswith(".tarbak.lock") for name in names)
    assert "./sub/c.txt" in names


def test_backup_dir_equal_to_source_skips_other_backup_sets(
    test_config: BackupConfig, source_tree: Path, timestamps
):
    """
    Archives of other prefixes and temp files of interrupted runs are left
    out too; user files that merely end in .tar.gz are still backed up.
    """
    config = test_config.with_updates(backup_dir=source_tree)
    leftover = f"{archive_name('test', timestamps[0])}.tmp"
    (source_tree / "other-2024-06-07_161950.tar.gz").write_bytes(b"other set")
    (source_tree / leftover).write_bytes(b"\x1f\x8b partial")
    (source_tree / "notes.tar.gz").write_bytes(b"user data")

    result = run_backup(config, now=timestamps[1])

    with tarfile.open(result.archive_path, "r:gz") as tar:
        names = tar.getnames()
    assert "./other-2024-06-07_161950.tar.gz" not in names
    assert f"./{leftover}" not in names
    assert "./notes.tar.gz" in names
    assert "./a.txt" in names


# ============================================================================
# Test 6: MUTUAL EXCLUSION
# ============================================================================

def test_concurrent_run_is_refused(test_config: BackupConfig, timestamps):
    """A run fails fast while another holds the backup directory lock."""
    with RunLock(test_config.lock_path):
        with pytest.raises(LockHeldError):
            run_backup(test_config, now=timestamps[0])

    assert list_archives(test_config.backup_dir, "test") == []

    # Lock released: the next run succeeds
    result = run_backup(test_config, now=timestamps[0])
    assert result.archive_path.exists()


def test_restore_without_lock_on_read_only_backup_dir(
    test_config: BackupConfig, target_dir: Path, timestamps, unopenable_lock
):
    """A restore from read-only backup media goes ahead without the lock."""
    run_backup(test_config, now=timestamps[0])
    unopenable_lock()

    result = run_restore(test_config)

    assert (target_dir / "a.txt").exists()
    assert (target_dir / "sub" / "c.txt").exists()
    assert result.archive_name == archive_name("test", timestamps[0])


def test_backup_fails_when_lock_file_cannot_be_opened(
    test_config: BackupConfig, timestamps, unopenable_lock
):
    """
    CRITICAL: A backup never writes into the backup directory without
    holding its lock.
    """
    unopenable_lock()

    with pytest.raises(LockUnavailableError) as exc_info:
        run_backup(test_config, now=timestamps[0])

    assert exc_info.value.details["stage"] == "source_validated"
    assert list_archives(test_config.backup_dir, "test") == []
