"""Extraction of proto sources from archives onto the real filesystem.

protoc only reads real files, so proto sources bundled in dependency archives
(typically jars) are copied out to a staging directory first.

Staging layout:
    <staging_base>/<sha1(archive file name)>/<path inside archive>

The staging directory name is derived from the archive's file name only, not
its full path or its content. Two discoveries of the same archive (for
example the same jar reached through different dependency paths) therefore
share one staging directory, and so do two different archives that happen to
share a file name.
"""

import hashlib
import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from ..errors import ArchiveError
from .archive import ArchiveEntry, ArchiveFileSystem, mount
from .predicates import SOURCE_EXTENSION, is_source_file

logger = logging.getLogger(__name__)

_COMPARE_CHUNK_SIZE = 64 * 1024
_SEPARATORS = tuple(sep for sep in ("/", os.sep, os.altsep) if sep)


@dataclass(frozen=True)
class ArchiveListing:
    """Sources staged from one archive.

    Attributes:
        original_archive: The archive the sources were extracted from
        staging_root: Directory the sources were copied into
        sources: Staged source files, in archive discovery order. Every
            path is a descendant of staging_root.
    """

    original_archive: Path
    staging_root: Path
    sources: tuple[Path, ...]


def staging_name(archive_path: Path) -> str:
    """Compute the staging directory name for an archive.

    Args:
        archive_path: Path to the archive

    Returns:
        SHA-1 hex digest of the archive's file name
    """
    return hashlib.sha1(Path(archive_path).name.encode("utf-8")).hexdigest()


def rebase(staging_root: Path, parts: Sequence[str]) -> Path:
    """Re-root an archive-relative path onto the staging directory.

    Backslashes are ordinary filename characters on POSIX and are kept.
    On Windows they are separators and the entry is rejected.

    Args:
        staging_root: Staging directory for the archive
        parts: Path components relative to the archive root

    Returns:
        The target path under staging_root

    Raises:
        ArchiveError: If the entry would land outside staging_root
    """
    if not parts:
        raise ArchiveError("Archive entry has an empty path")

    target = staging_root
    for part in parts:
        if part in (".", "..") or any(sep in part for sep in _SEPARATORS) or Path(part).is_absolute():
            raise ArchiveError(f"Refusing to stage unsafe archive entry {'/'.join(parts)!r}")
        target = target / part
    return target


def _same_content(entry: ArchiveEntry, target: Path) -> bool:
    with entry.open("rb") as source, open(target, "rb") as existing:
        while True:
            left = source.read(_COMPARE_CHUNK_SIZE)
            right = existing.read(_COMPARE_CHUNK_SIZE)
            if left != right:
                return False
            if not left:
                return True


def _copy_entry(entry: ArchiveEntry, target: Path) -> None:
    if target.exists():
        if target.is_file() and _same_content(entry, target):
            logger.debug(f"{target} is already staged")
            return
        raise FileExistsError(f"Cannot stage archive entry: {target} already exists with different content")

    with entry.open("rb") as source:
        with open(target, "xb") as destination:
            try:
                shutil.copyfileobj(source, destination)
            except BaseException:
                # Never leave a partial copy in the staging directory.
                destination.close()
                target.unlink(missing_ok=True)
                raise


class ArchiveExtractor:
    """Stages the proto sources held in archives.

    The extractor holds no per-archive state, so one instance can serve
    concurrent extract() calls for archives with different file names.
    Concurrent calls for archives sharing a file name write to the same
    staging directory and must be serialized by the caller.
    """

    def __init__(self, staging_base_dir: Path, extension: str = SOURCE_EXTENSION):
        """Initialize the extractor.

        Args:
            staging_base_dir: Directory under which per-archive staging
                directories are created
            extension: Source file extension to match
        """
        self.staging_base_dir = Path(staging_base_dir)
        self.extension = extension

    def staging_root_for(self, archive_path: Path) -> Path:
        return self.staging_base_dir / staging_name(archive_path)

    def extract(self, archive_path: Path) -> Optional[ArchiveListing]:
        """Copy the proto sources in an archive to its staging directory.

        Copying is not transactional: files staged before a failure are left
        in place. Rerunning with the same archive is safe, since existing
        files with identical content are kept.

        Args:
            archive_path: Path to a zip-compatible archive

        Returns:
            The listing of staged sources, or None if the archive holds no
            proto sources (no staging directory is created in that case)

        Raises:
            FileNotFoundError: If the archive does not exist
            ArchiveError: If the archive or one of its entries cannot be
                read, or an entry would be staged outside its staging
                directory. A file whose copy fails is removed.
            FileExistsError: If a staged file exists with different content
            OSError: If copying fails
        """
        archive_path = Path(archive_path)

        with mount(archive_path) as vfs:
            entries = self._find_sources(vfs)

            if not entries:
                logger.debug(f"No proto sources found in {archive_path}")
                return None

            staging_root = self.staging_root_for(archive_path)
            staging_root.mkdir(parents=True, exist_ok=True)

            targets = []
            for entry in entries:
                target = rebase(staging_root, vfs.relative_parts(entry))
                logger.debug(f"Copying {archive_path}!/{'/'.join(vfs.relative_parts(entry))} to {target}")

                # Parents are created per file since entries can sit at any depth.
                target.parent.mkdir(parents=True, exist_ok=True)
                with vfs.reading(entry):
                    _copy_entry(entry, target)
                targets.append(target)

        logger.info(f"Staged {len(targets)} proto source(s) from {archive_path} in {staging_root}")
        return ArchiveListing(
            original_archive=archive_path,
            staging_root=staging_root,
            sources=tuple(targets),
        )

    def _find_sources(self, vfs: ArchiveFileSystem) -> list[ArchiveEntry]:
        found = []
        for entry in vfs.walk():
            if is_source_file(entry, self.extension):
                logger.debug(f"Found proto file {'/'.join(vfs.relative_parts(entry))} in archive {vfs.archive_path}")
                found.append(entry)
        return found
