"""Report aggregation.

Turns classification results into the immutable Report handed to the outer
layer. Performs no I/O.
"""
from dataclasses import dataclass
import json
from typing import Dict, Iterable, Mapping, Tuple

from .classifier import ClassificationResult
from .extractor import CATEGORIES, Declaration, ElementKind


@dataclass(frozen=True)
class CategoryStats:
    total: int = 0
    used: int = 0
    unused: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {'total': self.total, 'used': self.used, 'unused': self.unused}


@dataclass(frozen=True)
class UnusedElement:
    file: str
    line: int
    name: str
    kind: ElementKind

    def to_dict(self) -> Dict[str, object]:
        return {'file': self.file, 'line': self.line, 'name': self.name, 'kind': self.kind.value}


@dataclass(frozen=True)
class Report:
    """Per-category counts plus the ordered unused list of one run."""
    by_category: Tuple[Tuple[str, CategoryStats], ...]
    unused: Tuple[UnusedElement, ...]
    files_scanned: int = 0
    warnings: Tuple[str, ...] = ()

    @property
    def categories(self) -> Dict[str, CategoryStats]:
        return dict(self.by_category)

    @property
    def total(self) -> int:
        return sum(stats.total for _, stats in self.by_category)

    @property
    def used(self) -> int:
        return sum(stats.used for _, stats in self.by_category)

    @property
    def unused_count(self) -> int:
        return len(self.unused)

    @property
    def usage_rate(self) -> float:
        """Share of used declarations in percent (100 for an empty corpus)."""
        if self.total == 0:
            return 100.0
        return self.used / self.total * 100

    def to_dict(self) -> Dict[str, object]:
        return {
            'files_scanned': self.files_scanned,
            'summary': {'total': self.total, 'used': self.used, 'unused': self.unused_count},
            'by_category': {name: stats.to_dict() for name, stats in self.by_category},
            'unused': [element.to_dict() for element in self.unused],
            'warnings': list(self.warnings),
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True, ensure_ascii=False)


class ReportAggregator:
    """Group results by kind and order the unused list."""

    def aggregate(self, results: Iterable[ClassificationResult],
                  declarations: Mapping[str, Declaration],
                  files_scanned: int = 0, warnings: Iterable[str] = ()) -> Report:
        """Build the Report.

        Args:
            results: One classification result per declaration
            declarations: Declaration arena, keyed by id
            files_scanned: Number of files that were read and analysed
            warnings: Per-file warnings collected during the run

        Returns:
            Report with all six categories, zeros included
        """
        counts = {category: [0, 0] for category in CATEGORIES.values()}
        unused = []

        for result in results:
            declaration = declarations[result.declaration_id]
            bucket = counts[declaration.kind.category]
            if result.used:
                bucket[0] += 1
            else:
                bucket[1] += 1
                unused.append(UnusedElement(declaration.file, declaration.line, declaration.name, declaration.kind))

        unused.sort(key=lambda e: (e.file, e.line, e.name, e.kind.value))
        by_category = tuple(
            (category, CategoryStats(total=used + dead, used=used, unused=dead))
            for category, (used, dead) in counts.items()
        )
        return Report(
            by_category=by_category,
            unused=tuple(unused),
            files_scanned=files_scanned,
            warnings=tuple(sorted(warnings)),
        )
