# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Tarbak Configuration - Immutable configuration data structures.

The configuration is resolved once (from CLI options, environment variables
or the builder helpers) and passed read-only into a backup or restore run.
It is frozen after creation so the core can never modify it mid-run.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from tarbak.errors import explain_invalid_prefix, explain_negative_keep

DEFAULT_PREFIX = "backup"
DEFAULT_LOG_FILE = Path("backup.log")
LOCK_FILENAME = ".tarbak.lock"


def _validate_prefix(prefix: str) -> bool:
    """
    Validate an archive prefix.

    Rules:
    - Non-empty
    - No path separators (archives live flat in the backup directory)
    - No glob metacharacters (the prefix is used in a directory glob)
    """
    if not prefix or not isinstance(prefix, str):
        return False
    if "/" in prefix or "\\" in prefix:
        return False
    if any(ch in prefix for ch in "*?[]"):
        return False
    return prefix not in (".", "..")


@dataclass(frozen=True)
class BackupConfig:
    """
    Immutable configuration for one backup or restore run.
    """

    # Directory whose contents are archived
    source_dir: Path = field(default_factory=lambda: Path("./source"))

    # Directory holding the archives (created on backup if absent)
    backup_dir: Path = field(default_factory=lambda: Path("./backup"))

    # Directory the latest archive is extracted into (must exist)
    target_dir: Path = field(default_factory=lambda: Path("./target"))

    # Archive name prefix: <prefix>-<YYYY-MM-DD_HHMMSS>.tar.gz
    prefix: str = DEFAULT_PREFIX

    # Log file appended to in addition to the console (None disables it)
    log_file: Path | None = field(default_factory=lambda: DEFAULT_LOG_FILE)

    # Number of newest archives to keep after a backup (0 disables pruning)
    keep_count: int = 0

    # Verify the archive structure right after creating it
    verify: bool = False

    # Entry names left out of archives at any depth (staging/temp subtrees)
    exclude_names: Tuple[str, ...] = ("tmp",)

    # Hold an advisory lock on the backup directory for the whole run
    use_lock: bool = True

    def __post_init__(self) -> None:
        """Validate configuration after creation."""
        errors: List[str] = []

        # Normalise str paths; the dataclass is frozen so go through object
        for name in ("source_dir", "backup_dir", "target_dir"):
            value = getattr(self, name)
            if isinstance(value, str):
                object.__setattr__(self, name, Path(value))
            elif not isinstance(value, Path):
                errors.append(f"{name} must be a path, got {type(value).__name__}")

        if isinstance(self.log_file, str):
            object.__setattr__(self, "log_file", Path(self.log_file))

        if not _validate_prefix(self.prefix):
            errors.append(explain_invalid_prefix(self.prefix))

        if not isinstance(self.keep_count, int) or isinstance(self.keep_count, bool):
            errors.append(f"keep_count must be an integer, got {self.keep_count!r}")
        elif self.keep_count < 0:
            errors.append(explain_negative_keep(self.keep_count))

        if not isinstance(self.exclude_names, tuple):
            object.__setattr__(self, "exclude_names", tuple(self.exclude_names))

        # Raise all errors at once
        if errors:
            from tarbak.exceptions import ConfigurationError

            raise ConfigurationError(
                "Configuration validation failed",
                details={"errors": errors},
            )

    @property
    def lock_path(self) -> Path:
        """Path of the advisory lock file inside the backup directory."""
        return self.backup_dir / LOCK_FILENAME

    def with_updates(self, **kwargs) -> "BackupConfig":
        """
        Create a new config with updated values.

        Since the config is frozen, this creates a new instance.
        """
        from dataclasses import asdict

        current = asdict(self)
        current.update(kwargs)
        return BackupConfig(**current)
