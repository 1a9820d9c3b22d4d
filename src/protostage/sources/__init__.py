"""Proto source discovery and archive staging."""

from .archive import ArchiveFileSystem, ZipFileSystem, mount, register_mounter
from .extractor import ArchiveExtractor, ArchiveListing, staging_name
from .predicates import SOURCE_EXTENSION, has_source_extension, is_source_file
from .scanner import resolve, walk_sources

__all__ = [
    "SOURCE_EXTENSION",
    "ArchiveExtractor",
    "ArchiveFileSystem",
    "ArchiveListing",
    "ZipFileSystem",
    "has_source_extension",
    "is_source_file",
    "mount",
    "register_mounter",
    "resolve",
    "staging_name",
    "walk_sources",
]
