"""Unused element detection: the parallel per-file schedule and the merge.

Workers parse, extract and scan one file each and hand back an immutable
FileAnalysis. The calling thread is the only collector. Graph building and
classification start after every file has been collected.
"""
from concurrent.futures import ThreadPoolExecutor
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from ..config import (
    Config,
    ConfigurationError,
    adjust_config_for_monorepo,
    load_config,
    merge_configs,
    resolve_jobs,
)
from .aggregator import Report, ReportAggregator
from .classifier import UsageClassifier
from .extractor import DeclarationExtractor
from .graph_builder import FileAnalysis, UsageGraphBuilder
from .js_import_tracker import JSImportTracker
from .parser import FileReadError, LanguageParser, SourceFile
from .reference_scanner import ReferenceScanner
from .walker import SourceWalker


logger = logging.getLogger(__name__)


class UnusedElementDetector:
    """Detect unused declarations across a source set."""

    def __init__(self, config: Optional[Config] = None, jobs: Optional[int] = None):
        """Initialize detector.

        Args:
            config: Run configuration (defaults when None)
            jobs: Worker count; None means TUC_JOBS or the CPU count

        Raises:
            ConfigurationError: If jobs is below 1
        """
        self.config = config or Config()
        self.jobs = resolve_jobs(jobs)
        try:
            self.classifier = UsageClassifier(self.config.entry_points, self.config.type_usage_policy)
        except ValueError as exc:
            raise ConfigurationError(str(exc)) from exc
        self.categories = self.config.detection_types.enabled_categories()

    def analyze_file(self, source: SourceFile) -> FileAnalysis:
        """Parse, extract and scan one file. Runs on a worker thread.

        Raises:
            FileReadError: If the file cannot be read, decoded, encoded or parsed
        """
        parser = LanguageParser.from_file_extension(source.path)
        if parser is None:
            raise FileReadError(source.path, f"unsupported file extension '{source.extension}'")

        text = source.read()
        try:
            tree = parser.parse(text)
        except UnicodeEncodeError as exc:
            raise FileReadError(source.path, f"not encodable as UTF-8 ({exc.reason})") from exc

        links = JSImportTracker().analyze_module(tree.root_node)
        extraction = DeclarationExtractor(self.categories).extract(
            tree, text, source.path, links,
            components_eligible=source.components_eligible,
            definitions=not source.reference_only,
        )
        occurrences = ReferenceScanner().scan(tree, source.path, extraction.definition_sites)

        if tree.root_node.has_error:
            logger.debug("Syntax errors in %s, extraction may be partial", source.path)

        return FileAnalysis(
            path=source.path,
            declarations=extraction.declarations,
            occurrences=tuple(occurrences),
            links=links,
            local_names=extraction.local_names,
        )

    def detect(self, sources: Iterable[Union[SourceFile, str]]) -> Report:
        """Run detection over a source set.

        Args:
            sources: SourceFile entries or plain paths; duplicates are ignored

        Returns:
            Report for the whole set
        """
        files = self._unique(sources)
        analyses: List[FileAnalysis] = []
        warnings: List[str] = []

        if files:
            workers = min(self.jobs, len(files))
            logger.info("Analyzing %d files with %d worker(s)", len(files), workers)
            with ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [executor.submit(self.analyze_file, source) for source in files]
                # Input order keeps the merge deterministic
                for future in futures:
                    try:
                        analyses.append(future.result())
                    except FileReadError as exc:
                        logger.warning("Skipping %s", exc)
                        warnings.append(str(exc))

        builder = UsageGraphBuilder(self.config.path_aliases, self.classifier.is_entry_point)
        usage = builder.build(analyses)
        results = self.classifier.classify(usage)

        return ReportAggregator().aggregate(
            results, usage.declarations, files_scanned=len(analyses), warnings=warnings,
        )

    @staticmethod
    def _unique(sources: Iterable[Union[SourceFile, str]]) -> List[SourceFile]:
        files = []
        seen = set()
        for source in sources:
            if not isinstance(source, SourceFile):
                source = SourceFile(path=Path(source).as_posix())
            if source.path not in seen:
                seen.add(source.path)
                files.append(source)
        return files


def discover_sources(config: Config, root: str | Path = ".") -> List[SourceFile]:
    """Source set of a project under the configured search dirs."""
    walker = SourceWalker(root, config.search_dirs, config.extensions, config.exclude_patterns)
    return walker.discover()


def detect_unused_elements(config_path: str | Path | None = None,
                           custom_config: Optional[Config] = None,
                           root: str | Path = ".",
                           jobs: Optional[int] = None,
                           sources: Optional[Sequence[Union[SourceFile, str]]] = None) -> Report:
    """Library entry point: load configuration, discover files and detect.

    Args:
        config_path: Explicit config file (else discovered under root)
        custom_config: Config merged over the loaded one
        root: Project root
        jobs: Worker count
        sources: Explicit source set; skips discovery when given

    Returns:
        Report for the project

    Raises:
        ConfigurationError: On invalid configuration or job count
    """
    config = load_config(config_path, root=root)
    if custom_config is not None:
        config = merge_configs(config, custom_config)
    config = adjust_config_for_monorepo(config, root)

    detector = UnusedElementDetector(config, jobs)
    if sources is None:
        sources = discover_sources(config, root)
    return detector.detect(sources)
