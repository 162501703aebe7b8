"""Used/unused classification of declarations."""
from dataclasses import dataclass
from fnmatch import fnmatch
import logging
import posixpath
from typing import Dict, Iterable, List

from .extractor import Declaration, ElementKind
from .graph_builder import UsageGraph
from .reference_scanner import IMPORT


logger = logging.getLogger(__name__)

# Reasons
REFERENCED = 'referenced'
ENTRY_POINT = 'entry_point'
SUPPRESSED = 'suppressed'
UNREFERENCED = 'unreferenced'
REFERENCED_ONLY_BY_UNUSED = 'referenced_only_by_unused'

TYPE_USAGE_POLICIES = ('any', 'live')
TYPE_KINDS = {ElementKind.TYPE, ElementKind.INTERFACE}


@dataclass(frozen=True)
class ClassificationResult:
    declaration_id: str
    used: bool
    reason: str


def normalize_path(path: str) -> str:
    path = posixpath.normpath(str(path).replace('\\', '/'))
    return path[2:] if path.startswith('./') else path


def is_absolute(path: str) -> bool:
    return path.startswith('/') or (len(path) > 2 and path[1] == ':' and path[2] == '/')


class EntryPointMatcher:
    """Decides whether a file is a configured entry point.

    Patterns are exact paths or globs. A relative pattern also matches an
    absolute path that ends with it at a directory boundary; relative paths
    must match the pattern as a whole.
    """

    def __init__(self, patterns: Iterable[str] = ()):
        self.patterns = [normalize_path(p) for p in patterns if p]

    def __call__(self, path: str) -> bool:
        if not self.patterns:
            return False
        path = normalize_path(path)
        anchored = is_absolute(path)
        for pattern in self.patterns:
            suffix = anchored and not is_absolute(pattern)
            if path == pattern or (suffix and path.endswith('/' + pattern)):
                return True
            if any(ch in pattern for ch in '*?[') and (fnmatch(path, pattern) or (suffix and fnmatch(path, '*/' + pattern))):
                return True
        return False


class UsageClassifier:
    """Label every declaration of a finished usage graph.

    Runs once, after all files were merged: a later file may hold the only
    reference to a declaration.
    """

    def __init__(self, entry_points: Iterable[str] = (), type_usage_policy: str = 'any'):
        if type_usage_policy not in TYPE_USAGE_POLICIES:
            raise ValueError(f"Unknown type usage policy: {type_usage_policy}")
        self.is_entry_point = EntryPointMatcher(entry_points)
        self.type_usage_policy = type_usage_policy

    def classify(self, usage: UsageGraph) -> List[ClassificationResult]:
        """Classify all declarations.

        Args:
            usage: Complete usage graph

        Returns:
            One result per declaration, ordered by declaration id
        """
        results: Dict[str, ClassificationResult] = {}
        for declaration_id in sorted(usage.declarations):
            declaration = usage.declarations[declaration_id]
            results[declaration_id] = ClassificationResult(
                declaration_id, *self._initial_verdict(usage, declaration))

        if self.type_usage_policy == 'live':
            self._demote_dead_types(usage, results)

        unused = sum(1 for r in results.values() if not r.used)
        logger.debug("Classified %d declarations, %d unused", len(results), unused)
        return list(results.values())

    def _initial_verdict(self, usage: UsageGraph, declaration: Declaration):
        if declaration.suppressed:
            return True, SUPPRESSED
        if self.is_entry_point(declaration.file):
            return True, ENTRY_POINT
        if usage.is_supported(declaration.id):
            return True, REFERENCED
        return False, UNREFERENCED

    def _demote_dead_types(self, usage: UsageGraph, results: Dict[str, ClassificationResult]):
        """Types whose every use sits inside unused declarations become unused too.

        Iterates to a fixpoint since demoting a type can strand another.
        """
        changed = True
        while changed:
            changed = False
            dead_by_file: Dict[str, List[Declaration]] = {}
            for result in results.values():
                if not result.used:
                    declaration = usage.declarations[result.declaration_id]
                    dead_by_file.setdefault(declaration.file, []).append(declaration)

            for declaration_id, result in results.items():
                declaration = usage.declarations[declaration_id]
                if not result.used or result.reason != REFERENCED or declaration.kind not in TYPE_KINDS:
                    continue

                live = [
                    o for o in usage.supporters(declaration_id)
                    if o.role != IMPORT
                    and not declaration.spans(o.file, o.line)
                    and not any(dead.spans(o.file, o.line) for dead in dead_by_file.get(o.file, []))
                ]
                if not live:
                    results[declaration_id] = ClassificationResult(declaration_id, False, REFERENCED_ONLY_BY_UNUSED)
                    changed = True
