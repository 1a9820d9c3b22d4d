"""Exception types raised by protostage.

Filesystem and archive problems are ``OSError`` subclasses so callers that
already handle I/O failures keep working; misuse and process failures are
``RuntimeError`` subclasses.
"""


class ProtostageError(Exception):
    """Base class for errors that abort a generation run."""

    pass


class ArchiveError(ProtostageError, OSError):
    """Raised when an archive cannot be opened or contains an unsafe entry."""

    pass


class BuilderFinalizedError(ProtostageError, RuntimeError):
    """Raised when a protoc invocation builder is used after finalize_with()."""

    pass


class ProtocNotFoundError(ProtostageError, FileNotFoundError):
    """Raised when no protoc executable can be located."""

    pass


class ProtocExecutionError(ProtostageError, RuntimeError):
    """Raised when protoc cannot be launched or exits with an error."""

    pass


class NoSourcesError(ProtostageError):
    """Raised when no proto sources were found and the request requires some."""

    pass
