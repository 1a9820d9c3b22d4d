"""Proto source generation driver.

Ties the pieces together for one run:

    1. Discover sources in the source directories
    2. Stage sources from source and import archives
    3. Build the protoc invocation
    4. Run protoc

Archives are staged on a thread pool when the request allows more than one
worker. Archives whose file names collide share a staging directory, so
their extractions are serialized with one lock per staging directory name.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from . import output
from .config import GenerationRequest
from .errors import NoSourcesError, ProtocExecutionError
from .execute import ProtocExecutor, ProtocInvocation, ProtocInvocationBuilder
from .protoc import resolve_protoc
from .sources import ArchiveExtractor, ArchiveListing, resolve

logger = logging.getLogger(__name__)

_TOTAL_PHASES = 4


@dataclass(frozen=True)
class GenerationResult:
    """
    Outcome of one generation run.

    Attributes:
        sources: Every source passed to protoc, plain sources first
        listings: Listings of the source archives, then the import archives,
            for archives that held proto sources
        invocation: The protoc invocation, or None if there was nothing to compile
    """

    sources: tuple[Path, ...]
    listings: tuple[ArchiveListing, ...]
    invocation: Optional[ProtocInvocation]


class StagingLocks:
    """One lock per staging directory, created on demand."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[Path, threading.Lock] = {}

    def for_root(self, staging_root: Path) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(staging_root)
            if lock is None:
                lock = threading.Lock()
                self._locks[staging_root] = lock
            return lock


class SourceCodeGenerator:
    """Runs source discovery, archive staging and protoc for one request."""

    def __init__(self, request: GenerationRequest, extractor: Optional[ArchiveExtractor] = None):
        """
        Args:
            request: The generation request
            extractor: Extractor to stage archives with (defaults to one
                staging under request.staging_base_dir)
        """
        self.request = request
        self.extractor = extractor or ArchiveExtractor(request.staging_base_dir)
        self._locks = StagingLocks()

    def generate(self, dry_run: bool = False) -> GenerationResult:
        """
        Generate code for the request.

        Args:
            dry_run: Build the invocation but do not run protoc

        Returns:
            The generation result

        Raises:
            NoSourcesError: If nothing was found and the request requires sources
            ProtocNotFoundError: If protoc cannot be located
            ProtocExecutionError: If protoc fails
            OSError: If discovery or staging fails
        """
        request = self.request

        with output.TimedLogger("Discovering proto sources", phase=(1, _TOTAL_PHASES)) as timed:
            plain_sources = resolve(request.source_dirs)
            timed.detail(f"{len(plain_sources)} source(s) in {len(request.source_dirs)} directory(ies)")

        with output.TimedLogger("Staging archives", phase=(2, _TOTAL_PHASES)) as timed:
            source_listings = self.stage_archives(request.source_archives)
            import_listings = self.stage_archives(request.import_archives)
            for listing in source_listings + import_listings:
                output.log_source("archive", f"{listing.original_archive.name} ({len(listing.sources)} sources)", verbose_only=False)
            timed.detail(f"{len(source_listings) + len(import_listings)} archive(s) with proto sources")

        sources = plain_sources + tuple(source for listing in source_listings for source in listing.sources)
        listings = source_listings + import_listings

        if not sources:
            if request.fail_on_missing_sources:
                raise NoSourcesError("No proto sources were found to compile")
            output.log_warning("No proto sources found, skipping protoc")
            return GenerationResult(sources=(), listings=listings, invocation=None)

        output.log_phase(3, _TOTAL_PHASES, "Preparing protoc invocation...")
        for target in request.outputs:
            target.directory.mkdir(parents=True, exist_ok=True)

        invocation = self.build_invocation(resolve_protoc(request.protoc), source_listings, import_listings, sources)
        output.log_detail(str(invocation), verbose_only=True)

        if dry_run:
            output.log_phase(4, _TOTAL_PHASES, "Dry run, not invoking protoc")
            return GenerationResult(sources=sources, listings=listings, invocation=invocation)

        with output.TimedLogger(f"Compiling {len(sources)} proto source(s)", phase=(4, _TOTAL_PHASES)):
            if not ProtocExecutor(invocation).invoke():
                raise ProtocExecutionError("protoc reported errors, see the log above for details")

        return GenerationResult(sources=sources, listings=listings, invocation=invocation)

    def stage_archives(self, archives: Sequence[Path]) -> tuple[ArchiveListing, ...]:
        """
        Stage each archive, keeping the input order in the result.

        Archives without proto sources are left out of the result.
        """
        if not archives:
            return ()

        if self.request.max_workers <= 1 or len(archives) == 1:
            listings = [self._extract(archive) for archive in archives]
        else:
            with ThreadPoolExecutor(max_workers=self.request.max_workers, thread_name_prefix="stage") as pool:
                listings = list(pool.map(self._extract, archives))

        return tuple(listing for listing in listings if listing is not None)

    def _extract(self, archive: Path) -> Optional[ArchiveListing]:
        with self._locks.for_root(self.extractor.staging_root_for(archive)):
            return self.extractor.extract(archive)

    def build_invocation(
        self,
        protoc: Path,
        source_listings: Sequence[ArchiveListing],
        import_listings: Sequence[ArchiveListing],
        sources: Sequence[Path],
    ) -> ProtocInvocation:
        """
        Assemble the protoc command line.

        Include paths come first (existing source directories, source archive
        staging roots, import directories, import archive staging roots),
        then outputs, plugins and flags, then the sources.
        """
        request = self.request
        include_paths = [directory for directory in request.source_dirs if directory.is_dir()]
        include_paths += [listing.staging_root for listing in source_listings]
        include_paths += list(request.import_dirs)
        include_paths += [listing.staging_root for listing in import_listings]

        builder = ProtocInvocationBuilder(protoc).with_include_paths(include_paths)
        for target in request.outputs:
            builder.with_output(target.kind, target.directory, target.options)
        for plugin in request.plugins:
            builder.with_plugin(plugin.plugin_id, plugin.executable)

        return builder.deterministic_output(request.deterministic_output).fatal_warnings(request.fatal_warnings).finalize_with(sources)
