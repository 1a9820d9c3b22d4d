"""Proto source discovery in plain directories.

Walks each source directory recursively and collects every proto source in
it. Missing directories are skipped rather than treated as errors, since
build configurations commonly list conventional directories that a given
project does not have.
"""

import logging
import os
from collections.abc import Collection
from pathlib import Path
from typing import Iterator, Union

from .predicates import SOURCE_EXTENSION, has_source_extension, is_source_file

logger = logging.getLogger(__name__)

PathLike = Union[str, os.PathLike]


def _raise_walk_error(error: OSError) -> None:
    raise error


def _check_collection(source_dirs: Collection[PathLike]) -> None:
    # A single str or Path is iterable too and would be walked character by
    # character or part by part.
    if isinstance(source_dirs, (str, bytes, os.PathLike)) or not isinstance(source_dirs, Collection):
        raise TypeError(f"source_dirs must be a collection of paths, got {type(source_dirs).__name__}")


def _walk_tree(root: Path, extension: str) -> Iterator[Path]:
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error, followlinks=False):
        dirnames.sort()
        base = Path(dirpath)
        for filename in sorted(filenames):
            if not has_source_extension(filename, extension):
                continue
            candidate = base / filename
            if candidate.is_file():
                yield candidate


def walk_sources(source_dirs: Collection[PathLike], extension: str = SOURCE_EXTENSION) -> Iterator[Path]:
    """Lazily yield the proto sources under each source directory.

    Directories are processed in the order given. Sources from earlier
    directories are yielded before any error raised while walking a later
    one.

    Args:
        source_dirs: Source directories to walk recursively. Must be a
            collection, not a single path.
        extension: Source file extension to match

    Yields:
        Paths of discovered source files

    Raises:
        TypeError: If source_dirs is a single path rather than a collection
        OSError: If a directory cannot be listed
    """
    _check_collection(source_dirs)

    for source_dir in source_dirs:
        root = Path(source_dir)
        if not root.exists():
            logger.info(f"Source directory {root} does not exist")
            continue

        logger.info(f"Discovering proto sources in {root}")

        if root.is_dir():
            yield from _walk_tree(root, extension)
        elif is_source_file(root, extension):
            yield root


def resolve(source_dirs: Collection[PathLike], extension: str = SOURCE_EXTENSION) -> tuple[Path, ...]:
    """Discover every proto source in the given source directories.

    Args:
        source_dirs: Source directories to walk recursively
        extension: Source file extension to match

    Returns:
        Discovered sources in walk order, as an immutable tuple

    Raises:
        TypeError: If source_dirs is a single path rather than a collection
        OSError: If a directory cannot be listed
    """
    sources = []
    for source in walk_sources(source_dirs, extension):
        logger.debug(f"Discovered proto source file at {source}")
        sources.append(source)

    logger.info(f"Discovered a total of {len(sources)} proto source(s)")
    return tuple(sources)
