"""Usage graph construction using NetworkX.

The graph is bipartite: declaration nodes (keyed by Declaration.id) and
occurrence nodes (keyed by Occurrence.key). An edge occurrence -> declaration
means the occurrence counts as usage of the declaration.
"""
from collections import defaultdict
from dataclasses import dataclass
import logging
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple
import networkx as nx

from .extractor import Declaration
from .js_import_tracker import ModuleLinks
from .reference_scanner import BINDING, DYNAMIC, EXPORT, IMPORT, REEXPORT, Occurrence
from .resolver import SymbolResolver


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileAnalysis:
    """Self-contained partial result of one file, produced by a worker."""
    path: str
    declarations: Tuple[Declaration, ...]
    occurrences: Tuple[Occurrence, ...]
    links: ModuleLinks
    local_names: FrozenSet[str]


class UsageGraph:
    """Declaration arena plus the occurrence -> declaration support edges."""

    def __init__(self):
        self.graph = nx.DiGraph()
        self.declarations: Dict[str, Declaration] = {}

    def add_declaration(self, declaration: Declaration):
        self.declarations[declaration.id] = declaration
        self.graph.add_node(declaration.id, declaration=declaration)

    def add_support(self, occurrence: Occurrence, declaration: Declaration) -> bool:
        """Record that an occurrence supports a declaration.

        An occurrence on the declaration's own definition line never counts.

        Returns:
            True if an edge was added
        """
        if occurrence.file == declaration.file and occurrence.line == declaration.line:
            return False
        if not self.graph.has_node(occurrence.key):
            self.graph.add_node(occurrence.key, occurrence=occurrence)
        self.graph.add_edge(occurrence.key, declaration.id)
        return True

    def supporters(self, declaration_id: str) -> List[Occurrence]:
        """Occurrences supporting a declaration, in (file, line, column) order."""
        found = [self.graph.nodes[key]['occurrence'] for key in self.graph.predecessors(declaration_id)]
        return sorted(found, key=lambda o: o.key)

    def is_supported(self, declaration_id: str) -> bool:
        return self.graph.in_degree(declaration_id) > 0

    def __len__(self) -> int:
        return len(self.declarations)


class UsageGraphBuilder:
    """Merge per-file results into one UsageGraph.

    Resolution order for a plain reference in file F:
    1. a top-level binding of F with that name (same-file shadowing wins)
    2. F's import map, resolved to the exporting declaration
    3. every declaration with that name (conservative)

    Export markers (`export { X }`, `export default X`) and one-hop
    re-exports (`export { X } from './m'`) only count when what they export
    is consumed by another file, or when their file is an entry point.
    """

    def __init__(self, path_aliases: Dict[str, List[str]] = None,
                 is_entry_point: Optional[Callable[[str], bool]] = None):
        """Initialize graph builder.

        Args:
            path_aliases: tsconfig-style alias map used to resolve imports
            is_entry_point: Predicate on file paths; entry files count as consumed
        """
        self.path_aliases = path_aliases or {}
        self.is_entry_point = is_entry_point or (lambda path: False)

    def build(self, analyses: Sequence[FileAnalysis]) -> UsageGraph:
        """Build the usage graph for a complete source set.

        Args:
            analyses: Partial results of every readable file, in input order

        Returns:
            UsageGraph with all declarations and support edges
        """
        self.usage = UsageGraph()
        self.files: Dict[str, FileAnalysis] = {}
        self.by_name: Dict[str, List[Declaration]] = defaultdict(list)
        self.by_file_name: Dict[Tuple[str, str], List[Declaration]] = defaultdict(list)
        # (file, export name) pairs requested by other files; file-wide for namespaces
        self.consumed: Set[Tuple[str, str]] = set()
        self.consumed_files: Set[str] = set()

        for analysis in analyses:
            self.files[analysis.path] = analysis
            for declaration in analysis.declarations:
                self.usage.add_declaration(declaration)
                self.by_name[declaration.name].append(declaration)
                self.by_file_name[(declaration.file, declaration.name)].append(declaration)

        self.resolver = SymbolResolver(self.files.keys(), self.path_aliases)

        markers = []
        for analysis in analyses:
            for occurrence in analysis.occurrences:
                if occurrence.role in (EXPORT, REEXPORT):
                    markers.append(occurrence)
                else:
                    self._support(occurrence, self._resolve_occurrence(analysis, occurrence))

        # Markers last: they depend on what the rest of the corpus consumed
        for occurrence in markers:
            self._support(occurrence, self._resolve_marker(occurrence))

        logger.debug(
            "Usage graph: %d declarations, %d edges over %d files",
            len(self.usage), self.usage.graph.number_of_edges(), len(self.files),
        )
        return self.usage

    def _support(self, occurrence: Occurrence, declarations: Iterable[Declaration]):
        for declaration in declarations:
            self.usage.add_support(occurrence, declaration)

    # -------------------------------------------------------------------------
    # Occurrence resolution
    # -------------------------------------------------------------------------

    def _resolve_occurrence(self, analysis: FileAnalysis, occurrence: Occurrence) -> List[Declaration]:
        if occurrence.role == BINDING:
            return []

        if occurrence.role == DYNAMIC:
            target = self.resolver.resolve(analysis.path, occurrence.module)
            return self._consume_all(target) if target else []

        if occurrence.role == IMPORT:
            return self._resolve_import(analysis.path, occurrence.module, occurrence.imported, occurrence.text)

        links = analysis.links

        if occurrence.member:
            info = links.imports.get(occurrence.qualifier) if occurrence.qualifier else None
            if info is not None and info.is_namespace:
                # ns.Name where ns is `import * as ns` or `const ns = require(...)`
                return self._resolve_import(analysis.path, info.source_module, occurrence.text, occurrence.text)
            return list(self.by_name.get(occurrence.text, []))

        name = occurrence.text
        if name in analysis.local_names:
            return list(self.by_file_name.get((analysis.path, name), []))

        info = links.imports.get(name)
        if info is not None:
            if info.is_namespace:
                # `ns.X` is resolved through the member token
                if occurrence.qualifies:
                    return []
                target = self.resolver.resolve(analysis.path, info.source_module)
                return self._consume_all(target) if target else []
            return self._resolve_import(analysis.path, info.source_module, info.original_name, name)

        return list(self.by_name.get(name, []))

    def _resolve_import(self, current_file: str, module: str, imported: str, local: str) -> List[Declaration]:
        """Declarations behind `imported` of `module`, as seen from current_file."""
        target = self.resolver.resolve(current_file, module)
        if target is None:
            fallback = local if imported in (None, 'default') else imported
            return list(self.by_name.get(fallback, []))

        self.consumed.add((target, imported))
        return self._lookup_export(target, imported, follow=True)

    def _lookup_export(self, target: str, name: str, follow: bool) -> List[Declaration]:
        """Find the declarations a module exports under `name`.

        Re-exports are followed for one hop only.
        """
        analysis = self.files.get(target)
        if analysis is None:
            return []
        links = analysis.links

        if name in links.exports:
            return list(self.by_file_name.get((target, links.exports[name]), []))

        if follow:
            found: List[Declaration] = []
            info = links.reexports.get(name)
            if info is not None:
                source = self.resolver.resolve(target, info.source_module)
                if source is None:
                    found.extend(self.by_name.get(info.original_name or name, []))
                elif info.is_namespace:
                    found.extend(self._exported(source))
                else:
                    found.extend(self._lookup_export(source, info.original_name, follow=False))
            else:
                for module in links.star_reexports:
                    source = self.resolver.resolve(target, module)
                    if source is not None:
                        found.extend(self._lookup_export(source, name, follow=False))
            if found:
                return found

        if name == 'default':
            return []
        return list(self.by_file_name.get((target, name), []))

    def _consume_all(self, target: str) -> List[Declaration]:
        self.consumed_files.add(target)
        return self._exported(target)

    def _exported(self, target: str) -> List[Declaration]:
        analysis = self.files.get(target)
        if analysis is None:
            return []
        return [d for d in analysis.declarations if d.is_exported]

    # -------------------------------------------------------------------------
    # Export markers
    # -------------------------------------------------------------------------

    def _is_consumed(self, file: str, exported: str) -> bool:
        return (
            (file, exported) in self.consumed
            or file in self.consumed_files
            or self.is_entry_point(file)
        )

    def _resolve_marker(self, occurrence: Occurrence) -> List[Declaration]:
        if not self._is_consumed(occurrence.file, occurrence.exported):
            return []

        if occurrence.role == EXPORT:
            return list(self.by_file_name.get((occurrence.file, occurrence.text), []))

        source = self.resolver.resolve(occurrence.file, occurrence.module)
        if source is None:
            return list(self.by_name.get(occurrence.imported, []))
        return self._lookup_export(source, occurrence.imported, follow=False)
