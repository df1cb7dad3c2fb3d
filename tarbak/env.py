# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Environment-based configuration helpers.

These helpers are small wrappers around create_config(). They read the
well-known environment variables so a deployment can configure backups
without passing options on every invocation.
"""

from __future__ import annotations

import os
from typing import Any

from tarbak.builder import create_config
from tarbak.config import BackupConfig
from tarbak.errors import explain_invalid_bool_env, explain_invalid_keep_env
from tarbak.exceptions import ConfigurationError

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(name: str, value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigurationError(explain_invalid_bool_env(name, value))


def _parse_keep(value: str | None) -> int:
    if not value:
        return 0
    try:
        keep = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(explain_invalid_keep_env(value)) from exc
    if keep < 0:
        raise ConfigurationError(explain_invalid_keep_env(value))
    return keep


def create_config_from_env(**overrides: Any) -> BackupConfig:
    """
    Create a BackupConfig from environment variables.

    Explicit keyword overrides win over the environment; overrides set to
    None are ignored so CLI options that were not given fall through.

    Optional environment variables:
        - SOURCE_DIR: Directory to back up (default: ./source)
        - BACKUP_DIR: Directory holding the archives (default: ./backup)
        - TARGET_DIR: Directory to restore into (default: ./target)
        - BACKUP_PREFIX: Archive name prefix (default: backup)
        - LOG_TO_FILE: 'True' | 'False' (default: True)
        - LOG_FILE: Log file path (default: backup.log)
        - BACKUP_KEEP: Number of archives to keep, 0 disables pruning
        - BACKUP_VERIFY: Verify archives after creation (default: False)
    """

    values: dict[str, Any] = {
        "source_dir": os.getenv("SOURCE_DIR"),
        "backup_dir": os.getenv("BACKUP_DIR"),
        "target_dir": os.getenv("TARGET_DIR"),
        "prefix": os.getenv("BACKUP_PREFIX"),
        "log_file": os.getenv("LOG_FILE"),
        "log_to_file": _parse_bool("LOG_TO_FILE", os.getenv("LOG_TO_FILE"), True),
        "keep_count": _parse_keep(os.getenv("BACKUP_KEEP")),
        "verify": _parse_bool("BACKUP_VERIFY", os.getenv("BACKUP_VERIFY"), False),
    }
    values.update({key: value for key, value in overrides.items() if value is not None})

    return create_config(**values)
