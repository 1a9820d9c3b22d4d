"""Proto source file predicates.

Shared by the directory scanner and the archive extractor so both agree on
what counts as a source file.
"""

from typing import Any

SOURCE_EXTENSION = ".proto"


def has_source_extension(name: str, extension: str = SOURCE_EXTENSION) -> bool:
    """Check whether a file name carries the source extension.

    The extension is everything from the last period to the end of the name
    and must match exactly. Matching is case-sensitive on every platform, so
    ``Foo.PROTO`` is not a source file.

    Args:
        name: File name (not a full path)
        extension: Extension including the leading period

    Returns:
        True if the name ends in exactly ``extension``
    """
    period_index = name.rfind(".")
    if period_index == -1:
        return False
    return name[period_index:] == extension


def is_source_file(entry: Any, extension: str = SOURCE_EXTENSION) -> bool:
    """Check whether a filesystem entry is a proto source file.

    Accepts anything with a ``name`` attribute and an ``is_file()`` method,
    which covers both ``pathlib.Path`` and ``zipfile.Path`` entries.
    ``Path.is_file()`` follows symlinks, so a link to a regular file counts.

    Args:
        entry: Path-like entry to check
        extension: Extension including the leading period

    Returns:
        True if the entry is a regular file with the source extension
    """
    return entry.is_file() and has_source_extension(entry.name, extension)
