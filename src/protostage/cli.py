"""
Command-line interface for protostage.

This module provides the `protostage` CLI tool:

    protostage generate   Discover, stage and compile proto sources
    protostage scan       List the proto sources in directories
    protostage extract    Stage the proto sources held in archives
"""

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from rich.console import Console
from rich.table import Table

from protostage import __version__, output
from protostage.config import GenerationRequest, staging_base_dir
from protostage.errors import ProtostageError
from protostage.generator import SourceCodeGenerator
from protostage.sources import ArchiveExtractor, resolve

console = Console()


@dataclass
class GenerateArgs:
    """Arguments for the generate command."""

    build_dir: Optional[Path] = None
    source_dirs: List[Path] = field(default_factory=list)
    archives: List[Path] = field(default_factory=list)
    import_dirs: List[Path] = field(default_factory=list)
    import_archives: List[Path] = field(default_factory=list)
    outputs: List[str] = field(default_factory=list)
    plugins: List[str] = field(default_factory=list)
    protoc: Optional[Path] = None
    config: Optional[Path] = None
    deterministic_output: bool = False
    fatal_warnings: bool = False
    fail_on_missing: bool = False
    jobs: Optional[int] = None
    dry_run: bool = False
    verbose: bool = False


def _error(message: str) -> None:
    console.print(f"[bold red]✗ Error:[/bold red] {message}", highlight=False)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    output.set_verbose(verbose)


def build_request(args: GenerateArgs) -> GenerationRequest:
    """Merge the config file (if any) with command line arguments.

    Command line values are appended to list settings from the config file
    and override its scalar settings.

    Raises:
        ValueError: If the merged configuration is invalid
        OSError: If the config file cannot be read
    """
    data: Dict[str, Any] = {}
    if args.config is not None:
        with open(args.config, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{args.config} must contain a JSON object")

    def extend(key: str, values: Sequence[Any]) -> None:
        data[key] = list(data.get(key, [])) + [str(value) for value in values]

    extend("source_dirs", args.source_dirs)
    extend("source_archives", args.archives)
    extend("import_dirs", args.import_dirs)
    extend("import_archives", args.import_archives)
    extend("outputs", args.outputs)
    extend("plugins", args.plugins)

    if args.build_dir is not None:
        data["build_output_dir"] = str(args.build_dir)
    data.setdefault("build_output_dir", "build")
    if args.protoc is not None:
        data["protoc"] = str(args.protoc)
    if args.jobs is not None:
        data["max_workers"] = args.jobs
    for key, enabled in (
        ("deterministic_output", args.deterministic_output),
        ("fatal_warnings", args.fatal_warnings),
        ("fail_on_missing_sources", args.fail_on_missing),
    ):
        if enabled:
            data[key] = True

    return GenerationRequest.from_dict(data)


def generate_command(args: GenerateArgs) -> int:
    """Discover, stage and compile proto sources.

    Examples:
        protostage generate --source-dir src/main/proto --out java=build/gen
        protostage generate --config protostage.json --dry-run
        protostage generate --import-archive lib/common-protos.jar --out python=gen -j 4
    """
    _configure_logging(args.verbose)
    output.log_header("protostage", __version__)

    try:
        request = build_request(args)
    except (ValueError, OSError) as e:
        _error(str(e))
        return 2

    try:
        result = SourceCodeGenerator(request).generate(dry_run=args.dry_run)
    except (ProtostageError, OSError) as e:
        _error(str(e))
        return 1

    if args.dry_run and result.invocation is not None:
        print(" ".join(result.invocation.arguments))
    elif result.invocation is not None:
        console.print(f"[bold green]✓ Compiled {len(result.sources)} proto source(s)[/bold green]")
    return 0


def scan_command(source_dirs: List[Path], verbose: bool = False) -> int:
    """List the proto sources in the given directories."""
    _configure_logging(verbose)
    try:
        sources = resolve(source_dirs)
    except OSError as e:
        _error(str(e))
        return 1

    for source in sources:
        print(source)
    return 0


def extract_command(archives: List[Path], build_dir: Path, verbose: bool = False) -> int:
    """Stage archives and show where their sources went."""
    _configure_logging(verbose)
    extractor = ArchiveExtractor(staging_base_dir(build_dir))

    table = Table(title="Staged archives")
    table.add_column("Archive")
    table.add_column("Staging directory")
    table.add_column("Sources", justify="right")

    exit_code = 0
    for archive in archives:
        try:
            listing = extractor.extract(archive)
        except OSError as e:
            _error(f"{archive}: {e}")
            exit_code = 1
            continue

        if listing is None:
            table.add_row(str(archive), "-", "0")
        else:
            table.add_row(str(archive), str(listing.staging_root), str(len(listing.sources)))

    console.print(table)
    return exit_code


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="protostage",
        description="protostage - stage proto sources and drive protoc",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"protostage {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    generate_parser = subparsers.add_parser(
        "generate",
        help="Discover, stage and compile proto sources",
    )
    generate_parser.add_argument(
        "-s",
        "--source-dir",
        dest="source_dirs",
        action="append",
        type=Path,
        default=[],
        help="Directory of proto sources to compile (repeatable)",
    )
    generate_parser.add_argument(
        "-a",
        "--archive",
        dest="archives",
        action="append",
        type=Path,
        default=[],
        help="Archive whose proto sources are compiled (repeatable)",
    )
    generate_parser.add_argument(
        "-I",
        "--import-dir",
        dest="import_dirs",
        action="append",
        type=Path,
        default=[],
        help="Directory of importable proto sources, not compiled (repeatable)",
    )
    generate_parser.add_argument(
        "--import-archive",
        dest="import_archives",
        action="append",
        type=Path,
        default=[],
        help="Archive of importable proto sources, not compiled (repeatable)",
    )
    generate_parser.add_argument(
        "-o",
        "--out",
        dest="outputs",
        action="append",
        default=[],
        metavar="KIND=DIR",
        help="Generator output, e.g. java=build/gen or java=lite:build/gen (repeatable)",
    )
    generate_parser.add_argument(
        "--plugin",
        dest="plugins",
        action="append",
        default=[],
        metavar="ID=PATH",
        help="protoc plugin executable registered as protoc-gen-ID (repeatable)",
    )
    generate_parser.add_argument(
        "--protoc",
        type=Path,
        default=None,
        help="protoc executable (default: $PROTOSTAGE_PROTOC, then PATH)",
    )
    generate_parser.add_argument(
        "-b",
        "--build-dir",
        type=Path,
        default=None,
        help="Build output directory (default: build)",
    )
    generate_parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="JSON config file; command line options are merged on top",
    )
    generate_parser.add_argument("--deterministic-output", action="store_true", help="Pass --deterministic_output to protoc")
    generate_parser.add_argument("--fatal-warnings", action="store_true", help="Pass --fatal_warnings to protoc")
    generate_parser.add_argument("--fail-on-missing", action="store_true", help="Fail when no proto sources are found")
    generate_parser.add_argument("-j", "--jobs", type=int, default=None, help="Archives to stage concurrently")
    generate_parser.add_argument("--dry-run", action="store_true", help="Print the protoc command instead of running it")
    generate_parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")

    scan_parser = subparsers.add_parser(
        "scan",
        help="List the proto sources in directories",
    )
    scan_parser.add_argument("source_dirs", nargs="+", type=Path, help="Directories to scan")
    scan_parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")

    extract_parser = subparsers.add_parser(
        "extract",
        help="Stage the proto sources held in archives",
    )
    extract_parser.add_argument("archives", nargs="+", type=Path, help="Archives to stage")
    extract_parser.add_argument(
        "-b",
        "--build-dir",
        type=Path,
        default=Path("build"),
        help="Build output directory (default: build)",
    )
    extract_parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """protostage - stage proto sources and drive protoc."""
    parser = _build_parser()
    parsed_args = parser.parse_args(argv)

    if not parsed_args.command:
        parser.print_help()
        return 0

    try:
        if parsed_args.command == "generate":
            args = GenerateArgs(
                build_dir=parsed_args.build_dir,
                source_dirs=parsed_args.source_dirs,
                archives=parsed_args.archives,
                import_dirs=parsed_args.import_dirs,
                import_archives=parsed_args.import_archives,
                outputs=parsed_args.outputs,
                plugins=parsed_args.plugins,
                protoc=parsed_args.protoc,
                config=parsed_args.config,
                deterministic_output=parsed_args.deterministic_output,
                fatal_warnings=parsed_args.fatal_warnings,
                fail_on_missing=parsed_args.fail_on_missing,
                jobs=parsed_args.jobs,
                dry_run=parsed_args.dry_run,
                verbose=parsed_args.verbose,
            )
            return generate_command(args)
        if parsed_args.command == "scan":
            return scan_command(parsed_args.source_dirs, parsed_args.verbose)
        if parsed_args.command == "extract":
            return extract_command(parsed_args.archives, parsed_args.build_dir, parsed_args.verbose)
    except KeyboardInterrupt:
        _error("Interrupted")
        return 130

    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
