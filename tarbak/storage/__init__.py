# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Storage capabilities - Archive container and filesystem probes.
"""

from tarbak.storage.archiver import ArchiveMember, Archiver, TarArchiver
from tarbak.storage.filesystem import (
    FilesystemProbe,
    LocalFilesystem,
    SpaceReport,
    sufficient_space,
)

__all__ = [
    "ArchiveMember",
    "Archiver",
    "TarArchiver",
    "FilesystemProbe",
    "LocalFilesystem",
    "SpaceReport",
    "sufficient_space",
]
