# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Backup Engine - Archive lifecycle, verification and restore steps.
"""

from tarbak.backup.naming import (
    archive_name,
    archive_pattern,
    list_archives,
    latest_archive,
)

from tarbak.backup.manager import (
    create_archive,
    prune_old_backups,
    get_backup_stats,
    CreatedArchive,
    PruneResult,
)

from tarbak.backup.verify import (
    verify_archive,
    VerificationResult,
)

from tarbak.backup.restore import (
    estimate_extracted_size,
    check_target_space,
    extract_archive,
)

__all__ = [
    # Naming
    "archive_name",
    "archive_pattern",
    "list_archives",
    "latest_archive",
    # Manager
    "create_archive",
    "prune_old_backups",
    "get_backup_stats",
    "CreatedArchive",
    "PruneResult",
    # Verify
    "verify_archive",
    "VerificationResult",
    # Restore
    "estimate_extracted_size",
    "check_target_space",
    "extract_archive",
]
