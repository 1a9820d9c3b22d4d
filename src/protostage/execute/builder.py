"""Builder for a protoc invocation.

protoc is sensitive to argument order (a later flag of the same kind usually
wins), so arguments are emitted exactly in the order the builder methods are
called. Nothing is validated or de-duplicated here: unknown output kinds and
repeated flags are passed straight through for protoc to judge.

Supported protoc flags are listed in the protoc command line interface
source, src/google/protobuf/compiler/command_line_interface.cc.
"""

from dataclasses import dataclass
from os import PathLike
from pathlib import Path
from typing import Iterable, Optional, Union

from ..errors import BuilderFinalizedError

StrPath = Union[str, PathLike]


@dataclass(frozen=True)
class ProtocInvocation:
    """A complete, ready-to-run protoc command line.

    Attributes:
        executable: Path to the protoc executable
        arguments: Full argument list, starting with the executable path
    """

    executable: Path
    arguments: tuple[str, ...]

    def __str__(self) -> str:
        return " ".join(self.arguments)


class ProtocInvocationBuilder:
    """Accumulates protoc arguments and produces a ProtocInvocation.

    Instances are single-use: once finalize_with() has been called, every
    further call raises BuilderFinalizedError.

    Example:
        >>> invocation = (
        ...     ProtocInvocationBuilder(Path("/usr/bin/protoc"))
        ...     .with_include_paths([Path("/src/main")])
        ...     .with_output("java", Path("/out"))
        ...     .fatal_warnings(True)
        ...     .finalize_with([Path("/src/main/a.proto")])
        ... )
    """

    def __init__(self, executable_path: StrPath):
        """
        Args:
            executable_path: Path to the protoc executable
        """
        self._executable = Path(executable_path)
        self._arguments: list[str] = [str(executable_path)]
        self._finalized = False

    def _check_not_finalized(self) -> None:
        if self._finalized:
            raise BuilderFinalizedError("ProtocInvocationBuilder cannot be reused after finalize_with()")

    def with_include_paths(self, directories: Iterable[StrPath]) -> "ProtocInvocationBuilder":
        """Add directories to resolve imports in, one --proto_path per directory.

        May be called repeatedly; paths accumulate in call order.
        """
        self._check_not_finalized()
        for directory in directories:
            self._arguments.append(f"--proto_path={directory}")
        return self

    def with_output(self, kind: str, directory: StrPath, options: Optional[str] = None) -> "ProtocInvocationBuilder":
        """Add an output directory for a code generator.

        Args:
            kind: Generator name, e.g. "java", "kotlin" or "python"
            directory: Directory the generator writes to
            options: Generator options, e.g. "lite", written as
                ``--<kind>_out=<options>:<directory>``

        Returns:
            This builder
        """
        self._check_not_finalized()
        if options:
            self._arguments.append(f"--{kind}_out={options}:{directory}")
        else:
            self._arguments.append(f"--{kind}_out={directory}")
        return self

    def with_plugin(self, plugin_id: str, executable: StrPath) -> "ProtocInvocationBuilder":
        """Register a code generator plugin executable as protoc-gen-<plugin_id>.

        The plugin's output still has to be requested with
        ``with_output(plugin_id, ...)``.
        """
        self._check_not_finalized()
        self._arguments.append(f"--plugin=protoc-gen-{plugin_id}={executable}")
        return self

    def with_flag(self, name: str, enabled: bool) -> "ProtocInvocationBuilder":
        """Add ``--<name>`` if enabled.

        Calling this more than once for the same flag emits it more than
        once.

        Args:
            name: Flag name, with or without the leading "--"
            enabled: Whether to add the flag

        Returns:
            This builder
        """
        self._check_not_finalized()
        if enabled:
            flag = name if name.startswith("--") else f"--{name}"
            self._arguments.append(flag)
        return self

    def deterministic_output(self, enabled: bool) -> "ProtocInvocationBuilder":
        return self.with_flag("deterministic_output", enabled)

    def fatal_warnings(self, enabled: bool) -> "ProtocInvocationBuilder":
        return self.with_flag("fatal_warnings", enabled)

    def finalize_with(self, source_files: Iterable[StrPath]) -> ProtocInvocation:
        """Append the source files and return the finished invocation.

        This builder cannot be used after this call.

        Args:
            source_files: Proto files to compile, in order

        Returns:
            The immutable invocation

        Raises:
            BuilderFinalizedError: If called on an already finalized builder
        """
        self._check_not_finalized()
        self._finalized = True
        for source_file in source_files:
            self._arguments.append(str(source_file))
        return ProtocInvocation(executable=self._executable, arguments=tuple(self._arguments))
