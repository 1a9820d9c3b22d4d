"""
Generation request configuration.

A GenerationRequest carries everything the generator needs for one run. It is
normally built from command line arguments, optionally layered over a JSON
config file parsed with GenerationRequest.from_dict().

Example config file:
    {
        "build_output_dir": "build",
        "source_dirs": ["src/main/proto"],
        "import_archives": ["lib/googleapis-common-protos-1.62.0.jar"],
        "outputs": [{"kind": "java", "directory": "build/generated/java"}],
        "fatal_warnings": true
    }
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

PLUGIN_NAME = "protostage"


def staging_base_dir(build_output_dir: Path) -> Path:
    """Directory under which archive sources are staged.

    Returns:
        ``<build_output_dir>/protostage/extracted``
    """
    return Path(build_output_dir) / PLUGIN_NAME / "extracted"


@dataclass(frozen=True)
class OutputTarget:
    """One code generator output (--<kind>_out)."""

    kind: str
    directory: Path
    options: Optional[str] = None

    @classmethod
    def parse(cls, value: str) -> "OutputTarget":
        """Parse ``KIND=DIR`` or ``KIND=OPTIONS:DIR``.

        Only the first colon separates options, and a single-letter prefix
        before it is treated as a Windows drive rather than options.

        Raises:
            ValueError: If the value has no '=' or an empty kind or directory
        """
        kind, sep, rest = value.partition("=")
        if not sep or not kind or not rest:
            raise ValueError(f"Invalid output {value!r}, expected KIND=DIR or KIND=OPTIONS:DIR")

        options: Optional[str] = None
        head, colon, tail = rest.partition(":")
        if colon and len(head) > 1 and tail:
            options, rest = head, tail
        return cls(kind=kind, directory=Path(rest), options=options)


@dataclass(frozen=True)
class ProtocPlugin:
    """A custom protoc code generator plugin (--plugin=protoc-gen-<id>=<path>)."""

    plugin_id: str
    executable: Path

    @classmethod
    def parse(cls, value: str) -> "ProtocPlugin":
        """Parse ``ID=PATH``.

        Raises:
            ValueError: If the value has no '=' or an empty id or path
        """
        plugin_id, sep, path = value.partition("=")
        if not sep or not plugin_id or not path:
            raise ValueError(f"Invalid plugin {value!r}, expected ID=PATH")
        return cls(plugin_id=plugin_id, executable=Path(path))


@dataclass(frozen=True)
class GenerationRequest:
    """
    Everything needed for one generation run.

    Attributes:
        build_output_dir: Build output directory; archives are staged below it
        outputs: Code generator outputs, in the order they are passed to protoc
        source_dirs: Directories whose proto sources are compiled
        source_archives: Archives whose proto sources are compiled
        import_dirs: Directories made importable but not compiled
        import_archives: Archives made importable but not compiled
        plugins: Custom code generator plugins
        protoc: Explicit protoc executable (otherwise looked up)
        deterministic_output: Pass --deterministic_output
        fatal_warnings: Pass --fatal_warnings
        fail_on_missing_sources: Fail instead of skipping when no sources are found
        max_workers: Number of archives staged concurrently
    """

    build_output_dir: Path
    outputs: tuple[OutputTarget, ...]
    source_dirs: tuple[Path, ...] = ()
    source_archives: tuple[Path, ...] = ()
    import_dirs: tuple[Path, ...] = ()
    import_archives: tuple[Path, ...] = ()
    plugins: tuple[ProtocPlugin, ...] = ()
    protoc: Optional[Path] = None
    deterministic_output: bool = False
    fatal_warnings: bool = False
    fail_on_missing_sources: bool = False
    max_workers: int = 1

    @property
    def staging_base_dir(self) -> Path:
        return staging_base_dir(self.build_output_dir)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GenerationRequest":
        """
        Parse a request from a plain mapping (e.g. a loaded JSON file).

        Outputs may be given as mappings with kind/directory/options keys or
        as ``KIND=DIR`` strings; plugins as id/executable mappings or
        ``ID=PATH`` strings. Unknown keys are ignored.

        Args:
            data: Raw configuration mapping

        Returns:
            The parsed request

        Raises:
            ValueError: If build_output_dir or outputs are missing or invalid
        """
        try:
            build_output_dir = Path(data["build_output_dir"])
        except KeyError:
            raise ValueError("Missing required field in config: 'build_output_dir'")

        outputs = tuple(_parse_output(item) for item in data.get("outputs", []))
        if not outputs:
            raise ValueError("Config must define at least one output")

        plugins = tuple(_parse_plugin(item) for item in data.get("plugins", []))

        max_workers = int(data.get("max_workers", 1))
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")

        protoc = data.get("protoc")

        return cls(
            build_output_dir=build_output_dir,
            outputs=outputs,
            source_dirs=_paths(data.get("source_dirs", [])),
            source_archives=_paths(data.get("source_archives", [])),
            import_dirs=_paths(data.get("import_dirs", [])),
            import_archives=_paths(data.get("import_archives", [])),
            plugins=plugins,
            protoc=Path(protoc) if protoc else None,
            deterministic_output=bool(data.get("deterministic_output", False)),
            fatal_warnings=bool(data.get("fatal_warnings", False)),
            fail_on_missing_sources=bool(data.get("fail_on_missing_sources", False)),
            max_workers=max_workers,
        )


def _paths(values: Any) -> tuple[Path, ...]:
    if isinstance(values, str):
        raise ValueError(f"Expected a list of paths, got the single string {values!r}")
    return tuple(Path(value) for value in values)


def _parse_output(item: Any) -> OutputTarget:
    if isinstance(item, str):
        return OutputTarget.parse(item)
    try:
        return OutputTarget(kind=item["kind"], directory=Path(item["directory"]), options=item.get("options"))
    except (KeyError, TypeError) as e:
        raise ValueError(f"Invalid output entry {item!r}: {e}")


def _parse_plugin(item: Any) -> ProtocPlugin:
    if isinstance(item, str):
        return ProtocPlugin.parse(item)
    try:
        return ProtocPlugin(plugin_id=item["id"], executable=Path(item["executable"]))
    except (KeyError, TypeError) as e:
        raise ValueError(f"Invalid plugin entry {item!r}: {e}")
