# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Tarbak command line interface.

Usage:
    tarbak create -s /path/to/source -b /path/to/backup -v -k 3
    tarbak restore -b /path/to/backup -t /path/to/target
    tarbak list -b /path/to/backup
    tarbak verify -b /path/to/backup

Options that are not given fall back to the environment (SOURCE_DIR,
BACKUP_DIR, TARGET_DIR, BACKUP_PREFIX, LOG_TO_FILE, LOG_FILE, BACKUP_KEEP,
BACKUP_VERIFY) and then to the built-in defaults.
"""

import sys
from pathlib import Path
from typing import Any, NoReturn

import click

from tarbak import __version__
from tarbak.backup.manager import get_backup_stats
from tarbak.backup.naming import latest_archive
from tarbak.backup.verify import VerificationResult, verify_archive
from tarbak.config import BackupConfig
from tarbak.core import run_backup, run_restore
from tarbak.env import create_config_from_env
from tarbak.exceptions import TarbakError
from tarbak.logs import configure_logging
from tarbak.sizes import format_size

_path = click.Path(path_type=Path)


def _fatal(error: TarbakError) -> NoReturn:
    """Report a terminal failure and exit with a non-zero status."""
    click.echo(f"ERROR: {error.message}", err=True)
    sys.exit(1)


def _load_config(**overrides: Any) -> BackupConfig:
    try:
        config = create_config_from_env(**overrides)
    except TarbakError as e:
        _fatal(e)
    configure_logging(config.log_file)
    return config


def _common_options(func):
    func = click.option("--prefix", help="Archive name prefix (default: backup).")(func)
    func = click.option(
        "-l", "--log-file", type=click.Path(dir_okay=False, path_type=Path),
        help="Log file to append to (default: backup.log).",
    )(func)
    func = click.option("-b", "--backup-dir", type=_path, help="Backup directory.")(func)
    return func


@click.group()
@click.version_option(__version__, prog_name="tarbak")
def main() -> None:
    """Create and restore directory backups."""


@main.command()
@click.option("-s", "--source", "source_dir", type=_path, help="Source directory to back up.")
@click.option("-v", "--verify", is_flag=True, help="Verify the backup after creation.")
@click.option(
    "-k", "--keep", "keep_count", type=click.IntRange(min=0),
    help="Number of latest backups to keep (0 keeps all).",
)
@_common_options
def create(
    source_dir: Path | None,
    verify: bool,
    keep_count: int | None,
    backup_dir: Path | None,
    log_file: Path | None,
    prefix: str | None,
) -> None:
    """Create a backup of the source directory."""
    config = _load_config(
        source_dir=source_dir,
        backup_dir=backup_dir,
        log_file=log_file,
        prefix=prefix,
        keep_count=keep_count,
        verify=True if verify else None,
    )
    try:
        run_backup(config)
    except TarbakError as e:
        _fatal(e)


@main.command()
@click.option("-t", "--target", "target_dir", type=_path, help="Target directory to restore into.")
@_common_options
def restore(
    target_dir: Path | None,
    backup_dir: Path | None,
    log_file: Path | None,
    prefix: str | None,
) -> None:
    """Restore the latest backup into the target directory."""
    config = _load_config(
        target_dir=target_dir,
        backup_dir=backup_dir,
        log_file=log_file,
        prefix=prefix,
    )
    try:
        run_restore(config)
    except TarbakError as e:
        _fatal(e)


@main.command(name="list")
@click.option("-b", "--backup-dir", type=_path, help="Backup directory.")
@click.option("--prefix", help="Archive name prefix (default: backup).")
def list_backups(backup_dir: Path | None, prefix: str | None) -> None:
    """List backups, newest first."""
    config = _load_config(backup_dir=backup_dir, prefix=prefix, log_to_file=False)
    try:
        stats = get_backup_stats(config.backup_dir, config.prefix)
    except TarbakError as e:
        _fatal(e)

    for archive in stats["archives"]:
        click.echo(f"{archive['name']}  {format_size(archive['size'])}")
    click.echo(
        f"{stats['archive_count']} backup(s), {format_size(stats['total_bytes'])} total"
    )


@main.command()
@click.argument("archive", required=False, type=_path)
@_common_options
def verify(
    archive: Path | None,
    backup_dir: Path | None,
    log_file: Path | None,
    prefix: str | None,
) -> None:
    """Verify ARCHIVE, or the latest backup if none is given."""
    config = _load_config(backup_dir=backup_dir, log_file=log_file, prefix=prefix)
    try:
        path = archive or config.backup_dir / latest_archive(config.backup_dir, config.prefix)
    except TarbakError as e:
        _fatal(e)

    result = verify_archive(path)
    click.echo(f"{path.name}: {result.value}")
    if result is not VerificationResult.VALID:
        sys.exit(1)


if __name__ == "__main__":  # pragma: no cover
    main()
