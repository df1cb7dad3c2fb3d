# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Tarbak Archiver - Compressed tar container operations.

This module wraps the tarfile module behind the Archiver protocol:
create a gzip-compressed tar of a directory, probe a file's magic bytes,
read an archive's full member index and extract it safely.
"""

import bz2
import gzip
import lzma
import os
import tarfile
import zlib
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Callable, Iterable, List, Protocol, Set

import structlog

from tarbak.exceptions import ArchiveReadError

logger = structlog.get_logger()

# Read size used when draining a compressed stream to its trailer
CHUNK_SIZE = 1024 * 1024

# Errors surfaced by tarfile and the decompressors on damaged input
ARCHIVE_ERRORS = (
    tarfile.TarError,
    OSError,
    EOFError,
    zlib.error,
    lzma.LZMAError,
)

# Compression magic -> opener; anything else is read as a plain tar
_COMPRESSION_MAGIC: List[tuple[bytes, Callable]] = [
    (b"\x1f\x8b", gzip.open),
    (b"BZh", bz2.open),
    (b"\xfd7zXZ\x00", lzma.open),
]


@dataclass(frozen=True)
class ArchiveMember:
    """One entry of an archive's member index."""

    name: str
    size: int
    is_dir: bool


class Archiver(Protocol):
    """Capability interface for archive containers."""

    def create(
        self,
        source: Path,
        destination: Path,
        *,
        exclude_paths: Iterable[Path] = (),
        exclude_names: Iterable[str] = (),
    ) -> None:
        ...

    def probe(self, archive: Path) -> bool:
        ...

    def members(self, archive: Path) -> List[ArchiveMember]:
        ...

    def extract(self, archive: Path, target: Path) -> None:
        ...


def _opener_for(archive: Path) -> Callable:
    """Pick the stream opener matching the file's leading magic bytes."""
    with open(archive, "rb") as f:
        head = f.read(6)
    for magic, opener in _COMPRESSION_MAGIC:
        if head.startswith(magic):
            return opener
    return open


def _is_tar_header(block: bytes) -> bool:
    """
    Check whether a 512-byte block parses as a tar header.

    An all-zero block is the end-of-archive marker of an empty archive
    and counts as tar.
    """
    if len(block) < tarfile.BLOCKSIZE:
        return False
    try:
        tarfile.TarInfo.frombuf(block, tarfile.ENCODING, "surrogateescape")
    except tarfile.EOFHeaderError:
        return True
    except tarfile.HeaderError:
        return False
    return True


def _is_unsafe_member(name: str) -> bool:
    path = PurePosixPath(name)
    return os.path.isabs(name) or path.is_absolute() or ".." in path.parts


def _under_symlink(path: PurePosixPath, symlinks: Set[PurePosixPath]) -> bool:
    return path in symlinks or any(parent in symlinks for parent in path.parents)


def _member_problem(member: tarfile.TarInfo, symlinks: Set[PurePosixPath]) -> str | None:
    """
    Describe why ``member`` cannot be extracted safely, or return None.

    ``symlinks`` holds the symlink members seen earlier in the archive;
    nothing may be written through one of them.
    """
    if _is_unsafe_member(member.name):
        return f"{member.name} escapes the target directory"
    if _under_symlink(PurePosixPath(member.name), symlinks):
        return f"{member.name} would be written through a symlink"
    if member.islnk():
        if _is_unsafe_member(member.linkname) or _under_symlink(
            PurePosixPath(member.linkname), symlinks
        ):
            return f"{member.name} is a hard link to {member.linkname}"
    return None


def _check_members(members: List[tarfile.TarInfo], target: Path, archive: Path) -> None:
    """Check every member against the target before anything is written."""
    symlinks: Set[PurePosixPath] = set()
    for member in members:
        problem = _member_problem(member, symlinks)
        if problem is None:
            try:
                tarfile.tar_filter(member, str(target))
            except tarfile.FilterError as e:
                problem = str(e)
        if problem is not None:
            raise ArchiveReadError(
                f"Unsafe member in archive: {problem}",
                details={"archive": str(archive), "member": member.name},
            )
        if member.issym():
            symlinks.add(PurePosixPath(member.name))


def _has_end_marker(archive: Path, offset: int) -> bool:
    """Check that an uncompressed tar has a zero block at ``offset``."""
    with open(archive, "rb") as f:
        f.seek(offset)
        block = f.read(tarfile.BLOCKSIZE)
    return len(block) == tarfile.BLOCKSIZE and block.count(0) == tarfile.BLOCKSIZE


class TarArchiver:
    """Archiver producing gzip-compressed tar files with the tarfile module."""

    def create(
        self,
        source: Path,
        destination: Path,
        *,
        exclude_paths: Iterable[Path] = (),
        exclude_names: Iterable[str] = (),
    ) -> None:
        """
        Archive the contents of ``source`` into ``destination``.

        Members are stored relative to the source directory ("./...").
        Entries whose path is in ``exclude_paths``, or any of whose
        components is in ``exclude_names``, are skipped along with
        everything below them.
        """
        source = Path(source).resolve()
        skip_paths = {Path(p).resolve() for p in exclude_paths}
        skip_names = set(exclude_names)

        def _filter(tarinfo: tarfile.TarInfo) -> tarfile.TarInfo | None:
            rel = PurePosixPath(tarinfo.name)
            if any(part in skip_names for part in rel.parts):
                return None
            absolute = Path(os.path.normpath(source / rel))
            if absolute in skip_paths:
                logger.debug("archive_member_excluded", member=tarinfo.name)
                return None
            return tarinfo

        with tarfile.open(destination, "w:gz") as tar:
            tar.add(source, arcname=".", filter=_filter)

    def probe(self, archive: Path) -> bool:
        """
        Check the file's content type by its magic bytes.

        Returns:
            True if the file is a (possibly compressed) tar archive

        Raises:
            ArchiveReadError: If a recognised compressed stream cannot be
                decompressed at all
        """
        try:
            opener = _opener_for(archive)
            with opener(archive, "rb") as stream:
                block = stream.read(tarfile.BLOCKSIZE)
        except ARCHIVE_ERRORS as e:
            raise ArchiveReadError(
                f"Failed to probe archive: {e}",
                details={"archive": str(archive)},
            ) from e

        return _is_tar_header(block)

    def members(self, archive: Path) -> List[ArchiveMember]:
        """
        Read the complete member index of an archive.

        The compressed stream is read through to its end so truncation and
        checksum errors in the trailer are detected, as ``tar -tzf`` does.
        An uncompressed tar has no checksum trailer, so it must instead end
        with an end-of-archive block right after its last member.

        Raises:
            ArchiveReadError: If the index cannot be read completely
        """
        try:
            opener = _opener_for(archive)
            with opener(archive, "rb") as stream:
                with tarfile.open(fileobj=stream, mode="r|") as tar:
                    members = [
                        ArchiveMember(name=m.name, size=m.size, is_dir=m.isdir())
                        for m in tar
                    ]
                while stream.read(CHUNK_SIZE):
                    pass
            # Stream mode stops silently on a cut-off header
            if opener is open and not _has_end_marker(archive, tar.offset):
                raise ArchiveReadError(
                    "Archive ends without an end-of-archive marker",
                    details={"archive": str(archive), "offset": tar.offset},
                )
        except ARCHIVE_ERRORS as e:
            raise ArchiveReadError(
                f"Failed to read archive index: {e}",
                details={"archive": str(archive)},
            ) from e

        return members

    def extract(self, archive: Path, target: Path) -> None:
        """
        Extract every member of ``archive`` into ``target``.

        Every member is checked before anything is written: paths must stay
        inside the target, hard links must point inside it, and nothing may
        be written through a symlink stored earlier in the archive. Symlinks
        themselves are restored as stored, absolute targets included, the
        way ``tar -xzf`` restores them (tarfile "tar" filter).
        """
        with tarfile.open(archive, "r:*") as tar:
            members = tar.getmembers()
            _check_members(members, target, archive)
            tar.extractall(target, members=members, filter="tar")
