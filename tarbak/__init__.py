# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Tarbak - Directory backup and restore with safety checks.

Creates timestamped gzip-compressed tar archives of a directory, verifies
them structurally after creation, prunes old archives beyond a keep count,
and restores the latest archive only after checking the target has room
for it. Package name: tarbak.
"""

__version__ = "1.1.0"

# Configuration creation (user-facing API)
from tarbak.builder import create_config
from tarbak.config import BackupConfig

# Core functions
from tarbak.core import (
    BackupResult,
    BackupStage,
    RestoreResult,
    RestoreStage,
    run_backup,
    run_restore,
)

# Environment-based configuration
from tarbak.env import create_config_from_env

__all__ = [
    # Version
    "__version__",
    # Configuration
    "BackupConfig",
    "create_config",
    "create_config_from_env",
    # Core orchestration functions
    "run_backup",
    "run_restore",
    "BackupResult",
    "BackupStage",
    "RestoreResult",
    "RestoreStage",
]
