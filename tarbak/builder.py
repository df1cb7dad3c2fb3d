# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Tarbak Builder - Functional builder pattern for configuration.

This module provides pure functions for building BackupConfig objects.
Each function takes a config dict and returns a new dict with the
modification applied (immutable updates).
"""

from pathlib import Path
from typing import Any, Callable, Dict, Iterable

from tarbak.config import DEFAULT_LOG_FILE, DEFAULT_PREFIX, BackupConfig


# Type alias for builder functions
ConfigDict = Dict[str, Any]
BuilderFunc = Callable[[ConfigDict], ConfigDict]


def create_empty_config() -> ConfigDict:
    """
    Create an initial configuration dictionary.

    Returns:
        Dict with default values for all configuration fields
    """
    return {
        "source_dir": Path("./source"),
        "backup_dir": Path("./backup"),
        "target_dir": Path("./target"),
        "prefix": DEFAULT_PREFIX,
        "log_file": DEFAULT_LOG_FILE,
        "keep_count": 0,
        "verify": False,
        "exclude_names": ("tmp",),
        "use_lock": True,
    }


def _as_path(value: Path | str) -> Path:
    return Path(value) if isinstance(value, str) else value


def with_source(config: ConfigDict, source_dir: Path | str) -> ConfigDict:
    """
    Set the directory to back up.

    Args:
        config: Current configuration dictionary
        source_dir: Directory whose contents are archived

    Returns:
        New configuration dictionary with source_dir set
    """
    return {**config, "source_dir": _as_path(source_dir)}


def with_backup_dir(config: ConfigDict, backup_dir: Path | str) -> ConfigDict:
    """
    Set the directory archives are written to and restored from.

    Args:
        config: Current configuration dictionary
        backup_dir: Backup directory

    Returns:
        New configuration dictionary with backup_dir set
    """
    return {**config, "backup_dir": _as_path(backup_dir)}


def with_target(config: ConfigDict, target_dir: Path | str) -> ConfigDict:
    """
    Set the directory the latest archive is restored into.

    Args:
        config: Current configuration dictionary
        target_dir: Restore target directory (must exist at restore time)

    Returns:
        New configuration dictionary with target_dir set
    """
    return {**config, "target_dir": _as_path(target_dir)}


def with_prefix(config: ConfigDict, prefix: str) -> ConfigDict:
    """
    Set the archive name prefix.

    Args:
        config: Current configuration dictionary
        prefix: Prefix used to name and select archives

    Returns:
        New configuration dictionary with prefix set
    """
    return {**config, "prefix": prefix}


def keep_latest(config: ConfigDict, count: int) -> ConfigDict:
    """
    Keep only the newest ``count`` archives after each backup.

    Args:
        config: Current configuration dictionary
        count: Number of archives to keep (0 disables pruning)

    Returns:
        New configuration dictionary with keep_count set
    """
    if count < 0:
        raise ValueError(f"keep count must be >= 0, got {count}")
    return {**config, "keep_count": count}


def verify_after_create(config: ConfigDict) -> ConfigDict:
    """
    Verify the archive structure right after it is created.

    Args:
        config: Current configuration dictionary

    Returns:
        New configuration dictionary with verification enabled
    """
    return {**config, "verify": True}


def exclude_names(config: ConfigDict, names: Iterable[str]) -> ConfigDict:
    """
    Add entry names to leave out of archives.

    Args:
        config: Current configuration dictionary
        names: Names excluded at any depth (e.g., ['tmp', '.cache'])

    Returns:
        New configuration dictionary with names added
    """
    merged = tuple(config["exclude_names"]) + tuple(n for n in names if n not in config["exclude_names"])
    return {**config, "exclude_names": merged}


def log_to(config: ConfigDict, log_file: Path | str) -> ConfigDict:
    """
    Append log lines to the given file as well as the console.

    Args:
        config: Current configuration dictionary
        log_file: Path of the log file

    Returns:
        New configuration dictionary with log_file set
    """
    return {**config, "log_file": _as_path(log_file)}


def disable_file_log(config: ConfigDict) -> ConfigDict:
    """
    Log to the console only.

    Args:
        config: Current configuration dictionary

    Returns:
        New configuration dictionary without a log file
    """
    return {**config, "log_file": None}


def disable_lock(config: ConfigDict) -> ConfigDict:
    """
    Run without the advisory backup directory lock.

    WARNING: concurrent runs against the same backup directory are then
    not excluded from each other.

    Args:
        config: Current configuration dictionary

    Returns:
        New configuration dictionary with locking disabled
    """
    return {**config, "use_lock": False}


def build_config(config_dict: ConfigDict) -> BackupConfig:
    """
    Validate and build an immutable BackupConfig from a configuration dictionary.

    Args:
        config_dict: Configuration dictionary built using builder functions

    Returns:
        Validated, immutable BackupConfig instance

    Raises:
        ConfigurationError: If validation fails
    """
    return BackupConfig(**config_dict)


def pipe(*funcs: BuilderFunc) -> BuilderFunc:
    """
    Compose multiple builder functions into a single function.

    This allows a more readable pipeline style:

        config = pipe(
            lambda c: with_source(c, "/srv/data"),
            lambda c: keep_latest(c, 3),
            verify_after_create,
        )(create_empty_config())

    Args:
        *funcs: Builder functions to compose

    Returns:
        A single function that applies all functions in sequence
    """

    def composed(config: ConfigDict) -> ConfigDict:
        result = config
        for func in funcs:
            result = func(result)
        return result

    return composed


def build_from_steps(*steps: BuilderFunc) -> BackupConfig:
    """
    Build config by applying a sequence of builder functions.

    This is a convenience function that combines pipe() and build_config().

    Example:
        config = build_from_steps(
            lambda c: with_source(c, "/srv/data"),
            lambda c: with_backup_dir(c, "/var/backups"),
            verify_after_create,
        )

    Args:
        *steps: Builder functions to apply in sequence

    Returns:
        Validated, immutable BackupConfig instance
    """
    return build_config(pipe(*steps)(create_empty_config()))


def create_config(
    *,
    source_dir: str | Path | None = None,
    backup_dir: str | Path | None = None,
    target_dir: str | Path | None = None,
    prefix: str | None = None,
    log_file: str | Path | None = None,
    log_to_file: bool = True,
    keep_count: int = 0,
    verify: bool = False,
    **kwargs: Any,
) -> BackupConfig:
    """
    Create a Tarbak configuration from simple parameters.

    This is the recommended user-facing API for creating configurations.

    Args:
        source_dir: Directory to back up (default: "./source")
        backup_dir: Directory holding the archives (default: "./backup")
        target_dir: Directory to restore into (default: "./target")
        prefix: Archive name prefix (default: "backup")
        log_file: Log file path (default: "backup.log")
        log_to_file: Set False to log to the console only
        keep_count: Number of newest archives to keep (default: 0, disabled)
        verify: Verify each new archive after creation (default: False)
        **kwargs: Additional configuration options

    Returns:
        Validated, immutable BackupConfig instance

    Example:
        config = create_config(
            source_dir="/srv/app/data",
            backup_dir="/var/backups/app",
            prefix="app",
            keep_count=3,
            verify=True,
        )
    """
    config_dict = create_empty_config()

    if source_dir:
        config_dict = with_source(config_dict, source_dir)
    if backup_dir:
        config_dict = with_backup_dir(config_dict, backup_dir)
    if target_dir:
        config_dict = with_target(config_dict, target_dir)
    if prefix:
        config_dict = with_prefix(config_dict, prefix)

    if not log_to_file:
        config_dict = disable_file_log(config_dict)
    elif log_file:
        config_dict = log_to(config_dict, log_file)

    # Negative counts are reported by BackupConfig validation
    config_dict["keep_count"] = keep_count
    if verify:
        config_dict = verify_after_create(config_dict)

    # Apply any additional kwargs
    for key, value in kwargs.items():
        if key in config_dict:
            config_dict[key] = value

    return build_config(config_dict)
