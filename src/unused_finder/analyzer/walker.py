"""Source discovery under the configured search directories."""
from fnmatch import fnmatch
import logging
import os
from pathlib import Path, PurePosixPath
from typing import Iterable, List

from .parser import SourceFile


logger = logging.getLogger(__name__)

# Never descended into, whatever the exclude patterns say
SKIPPED_DIRS = {
    'node_modules', '.git', '.hg', '.svn',
    '.next', '.turbo', '.nyc_output', 'bower_components',
}


def matches_pattern(relative_path: str, pattern: str) -> bool:
    """Exclude-pattern semantics.

    - plain names (`dist`, `__tests__`) match a whole path component
    - `dir/**` matches everything below `dir`
    - other globs match the relative path or the file name
    """
    pattern = pattern.strip().rstrip('/')
    if not pattern:
        return False
    path = PurePosixPath(relative_path)

    if pattern.endswith('/**'):
        prefix = pattern[:-3]
        return relative_path == prefix or relative_path.startswith(prefix + '/') or \
            any(fnmatch(str(parent), prefix) for parent in path.parents)

    if not any(ch in pattern for ch in '*?['):
        if '/' in pattern:
            return relative_path == pattern or relative_path.startswith(pattern + '/')
        return pattern in path.parts

    return fnmatch(relative_path, pattern) or fnmatch(path.name, pattern)


class SourceWalker:
    """Collect the source set of a project.

    Files matching an exclude pattern are still part of the set as
    reference-only files: usages inside them count, definitions do not.
    """

    def __init__(self, root: str | Path, search_dirs: Iterable[str],
                 extensions: Iterable[str], exclude_patterns: Iterable[str] = ()):
        self.root = Path(root).resolve()
        self.search_dirs = list(search_dirs)
        self.extensions = {ext.lower() if ext.startswith('.') else f".{ext.lower()}" for ext in extensions}
        self.exclude_patterns = list(exclude_patterns)

    def discover(self) -> List[SourceFile]:
        """Walk every search dir in sorted order.

        Returns:
            SourceFile entries with root-relative POSIX paths, deduplicated
        """
        seen = set()
        sources: List[SourceFile] = []

        for search_dir in self.search_dirs:
            base = (self.root / search_dir).resolve()
            if not base.is_dir():
                logger.warning("Search directory does not exist: %s", search_dir)
                continue

            for file_path in self._walk(base):
                relative = self._relative(file_path)
                if relative in seen:
                    continue
                seen.add(relative)
                sources.append(SourceFile(
                    path=relative,
                    location=str(file_path),
                    reference_only=self.is_excluded(relative),
                ))

        logger.debug("Discovered %d source files", len(sources))
        return sources

    def is_excluded(self, relative_path: str) -> bool:
        return any(matches_pattern(relative_path, pattern) for pattern in self.exclude_patterns)

    def _walk(self, base: Path):
        for directory, dirnames, filenames in os.walk(base):
            # In-place sort keeps os.walk deterministic
            dirnames[:] = sorted(d for d in dirnames if d not in SKIPPED_DIRS)
            for filename in sorted(filenames):
                if self._has_extension(filename):
                    yield Path(directory) / filename

    def _has_extension(self, filename: str) -> bool:
        lowered = filename.lower()
        return any(lowered.endswith(ext) for ext in self.extensions)

    def _relative(self, file_path: Path) -> str:
        try:
            return file_path.relative_to(self.root).as_posix()
        except ValueError:
            # search dir outside the root
            return file_path.as_posix()
