"""Archives mounted as read-only virtual filesystems.

An archive is opened once, walked like a directory tree, and closed again.
The extractor only relies on the ``ArchiveFileSystem`` protocol, so another
container format can be plugged in with ``register_mounter`` without touching
the extraction logic.

Zip-compatible containers (.zip, .jar, .war, ...) are handled by
``ZipFileSystem`` on top of ``zipfile.Path``, which also synthesizes the
directory entries that many jar tools never write.
"""

import logging
import zipfile
import zlib
from contextlib import contextmanager
from pathlib import Path
from types import TracebackType
from typing import Any, Callable, ContextManager, Iterator, Optional, Protocol, runtime_checkable

from ..errors import ArchiveError

logger = logging.getLogger(__name__)


@runtime_checkable
class ArchiveEntry(Protocol):
    """A file or directory inside a mounted archive."""

    @property
    def name(self) -> str: ...

    def is_file(self) -> bool: ...

    def is_dir(self) -> bool: ...

    def iterdir(self) -> Iterator[Any]: ...

    def open(self, mode: str = "r", *args: Any, **kwargs: Any) -> Any: ...


@runtime_checkable
class ArchiveFileSystem(Protocol):
    """A mounted archive.

    Implementations are context managers: the archive is released on exit
    from the ``with`` block no matter how the block ends.
    """

    archive_path: Path

    @property
    def root(self) -> ArchiveEntry:
        """The root directory of the archive."""
        ...

    def walk(self) -> Iterator[ArchiveEntry]:
        """Lazily yield every entry below the root.

        A directory's own entries come before the contents of its
        subdirectories, the same order os.walk visits a directory tree.
        """
        ...

    def reading(self, entry: ArchiveEntry) -> ContextManager[None]:
        """Context for reading the content of ``entry``.

        Damaged or unreadable entry data raised inside the block surfaces as
        ArchiveError.
        """
        ...

    def relative_parts(self, entry: ArchiveEntry) -> tuple[str, ...]:
        """Path components of ``entry`` relative to the archive root."""
        ...

    def close(self) -> None: ...

    def __enter__(self) -> "ArchiveFileSystem": ...

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None: ...


class ZipFileSystem:
    """Zip-compatible archive exposed as a directory tree.

    Children of a directory are visited in sorted name order so the walk is
    the same regardless of the order entries were written to the archive.
    All children of a directory are yielded before any subdirectory is
    descended into.
    """

    def __init__(self, archive_path: Path):
        """Open the archive.

        Args:
            archive_path: Path to the zip-compatible archive

        Raises:
            FileNotFoundError: If the archive does not exist
            ArchiveError: If the file is not a readable zip archive
        """
        self.archive_path = Path(archive_path)
        try:
            self._zip = zipfile.ZipFile(self.archive_path, "r")
        except zipfile.BadZipFile as e:
            raise ArchiveError(f"Cannot open {self.archive_path} as a zip archive: {e}") from e
        self._root = zipfile.Path(self._zip)
        logger.debug(f"Mounted {self.archive_path}")

    @property
    def root(self) -> zipfile.Path:
        return self._root

    def walk(self) -> Iterator[zipfile.Path]:
        yield from self._walk_dir(self._root)

    def _walk_dir(self, directory: zipfile.Path) -> Iterator[zipfile.Path]:
        children = sorted(directory.iterdir(), key=lambda entry: entry.name)
        yield from children
        for child in children:
            if child.is_dir():
                yield from self._walk_dir(child)

    def relative_parts(self, entry: zipfile.Path) -> tuple[str, ...]:
        return tuple(part for part in entry.at.split("/") if part)

    @contextmanager
    def reading(self, entry: zipfile.Path) -> Iterator[None]:
        # zipfile reports bad CRCs and truncated or undecodable data only once
        # the stream is read, and encrypted or unsupported entries on open.
        try:
            yield
        except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError) as e:
            raise ArchiveError(f"Cannot read {entry.at} from {self.archive_path}: {e}") from e

    def close(self) -> None:
        self._zip.close()
        logger.debug(f"Unmounted {self.archive_path}")

    def __enter__(self) -> "ZipFileSystem":
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        del exc_type, exc_val, exc_tb  # Unused
        self.close()


Mounter = Callable[[Path], ArchiveFileSystem]

_mounters: dict[str, Mounter] = {}


def register_mounter(suffix: str, mounter: Mounter) -> None:
    """Register a mounter for archives with the given file suffix.

    Args:
        suffix: File suffix including the period, e.g. ".tar". Matched
            case-insensitively.
        mounter: Callable that opens the archive and returns a mounted
            ArchiveFileSystem
    """
    _mounters[suffix.lower()] = mounter


def mount(archive_path: Path) -> ArchiveFileSystem:
    """Mount an archive as a virtual filesystem.

    Archives with no registered suffix are treated as zip-compatible, which
    covers jars and zips regardless of their extension.

    Args:
        archive_path: Path to the archive

    Returns:
        The mounted filesystem, to be used as a context manager
    """
    archive_path = Path(archive_path)
    mounter = _mounters.get(archive_path.suffix.lower(), ZipFileSystem)
    return mounter(archive_path)
