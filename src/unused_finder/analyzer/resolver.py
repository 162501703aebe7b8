import posixpath
from typing import Dict, Iterable, List, Optional


class SymbolResolver:
    """
    Resolves import specifiers to members of the source set.
    Works purely on the known file paths, so the disk is never probed and
    resolution is identical for every run over the same set.
    """

    PROBE_EXTENSIONS = ['.ts', '.tsx', '.d.ts', '.js', '.jsx', '.mjs', '.cjs']
    # TypeScript ESM sources import './x.js' for './x.ts'
    COMPILED_EXTENSIONS = {
        '.js': ['.ts', '.tsx'],
        '.jsx': ['.tsx'],
        '.mjs': ['.mts'],
        '.cjs': ['.cts'],
    }

    def __init__(self, known_files: Iterable[str], path_aliases: Dict[str, List[str]] = None):
        self.known_files = {posixpath.normpath(path): path for path in known_files}
        # Normalize tsconfig-style paths: {"@app/*": ["src/*"]} -> {"@app": ["src"]}
        self.aliases: Dict[str, List[str]] = {}
        for alias, targets in (path_aliases or {}).items():
            clean_alias = alias[:-2] if alias.endswith('/*') else alias
            self.aliases[clean_alias] = [
                target[:-2] if target.endswith('/*') else target for target in targets
            ]
        self._cache: Dict[tuple, Optional[str]] = {}

    def resolve(self, current_file: str, import_string: str) -> Optional[str]:
        """
        Determines which source file an import specifier refers to.

        Args:
            current_file: Path of the file containing the import.
            import_string: The specifier of the import (e.g. './utils', '@/types').

        Returns:
            Path of the matching source file, or None when it is not part of the set.
        """
        if not import_string:
            return None

        key = (posixpath.dirname(current_file), import_string)
        if key not in self._cache:
            self._cache[key] = self._resolve(key[0], import_string)
        return self._cache[key]

    def _resolve(self, directory: str, import_string: str) -> Optional[str]:
        # 1. Relative imports
        if import_string.startswith('.'):
            return self._probe(posixpath.join(directory, import_string))

        # 2. Path aliases, longest alias first
        for alias in sorted(self.aliases, key=len, reverse=True):
            if import_string == alias or import_string.startswith(alias.rstrip('/') + '/'):
                remainder = import_string[len(alias):].lstrip('/')
                for target in self.aliases[alias]:
                    resolved = self._probe(posixpath.join(target, remainder) if remainder else target)
                    if resolved:
                        return resolved

        # 3. Root-relative (baseUrl style); bare packages simply miss
        return self._probe(import_string)

    def _probe(self, path: str) -> Optional[str]:
        """
        Probes the known files using JS resolution rules:
        1. Exact match
        2. Extensions (.ts, .tsx, .js, ...)
        3. Compiled extension swapped for its source extension
        4. Directory index files
        """
        path = posixpath.normpath(path)

        if path in self.known_files:
            return self.known_files[path]

        for ext in self.PROBE_EXTENSIONS:
            if path + ext in self.known_files:
                return self.known_files[path + ext]

        stem, suffix = posixpath.splitext(path)
        for ext in self.COMPILED_EXTENSIONS.get(suffix, []):
            if stem + ext in self.known_files:
                return self.known_files[stem + ext]

        for ext in self.PROBE_EXTENSIONS:
            index_file = posixpath.join(path, f"index{ext}")
            if index_file in self.known_files:
                return self.known_files[index_file]

        return None
