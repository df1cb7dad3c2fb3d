# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Human-friendly error message helpers for Tarbak.

These helpers centralize wording for common configuration errors so that
the config layer, the environment loader and the CLI present consistent,
actionable messages.
"""


def explain_invalid_keep_env(value: str | None) -> str:
    """
    Explain that BACKUP_KEEP is invalid.
    """

    return (
        f"Invalid BACKUP_KEEP value: {value!r}. "
        "It must be a non-negative integer number of archives (0 disables pruning)."
    )


def explain_invalid_bool_env(name: str, value: str | None) -> str:
    """
    Explain that a boolean environment variable is invalid.
    """

    return (
        f"Invalid {name} value: {value!r}. "
        "Expected one of: 'true', 'false', '1', '0', 'yes' or 'no'."
    )


def explain_invalid_prefix(prefix: str) -> str:
    """
    Explain that an archive prefix cannot be used.
    """

    return (
        f"Invalid archive prefix: {prefix!r}. "
        "The prefix must be non-empty and must not contain path separators, "
        "since archives are stored flat inside the backup directory."
    )


def explain_negative_keep(keep: int) -> str:
    """
    Explain that keep_count must not be negative.
    """

    return (
        f"keep_count must be >= 0, got {keep}. "
        "Use 0 to disable pruning of old backups."
    )
