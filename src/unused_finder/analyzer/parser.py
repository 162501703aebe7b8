"""Tree-sitter parsing for TypeScript and JavaScript sources."""
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path, PurePosixPath
from typing import Optional
from tree_sitter import Language, Node, Parser, Tree
import tree_sitter_javascript as tsjavascript
import tree_sitter_typescript as tstypescript


# Only JSX-capable files can define UI components
COMPONENT_EXTENSIONS = {'.tsx', '.jsx'}


class FileReadError(OSError):
    """A source file could not be read or decoded.

    Raised per file by the analysis workers. The run skips the file and
    records a warning instead of aborting.
    """

    def __init__(self, path: str, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass(frozen=True)
class SourceFile:
    """One member of the source set.

    `path` is the file's identity in reports. `location` is where the text
    lives on disk when it differs from `path` (the walker hands out
    root-relative paths). `text` may be preloaded, in which case the disk is
    never touched.
    """
    path: str
    text: Optional[str] = None
    location: Optional[str] = None
    reference_only: bool = False

    @property
    def extension(self) -> str:
        return PurePosixPath(self.path).suffix.lower()

    @property
    def language(self) -> Optional[str]:
        return LanguageParser.SUPPORTED_LANGUAGES.get(self.extension)

    @property
    def components_eligible(self) -> bool:
        return self.extension in COMPONENT_EXTENSIONS

    def read(self) -> str:
        """Return the file text, reading it from disk when not preloaded.

        Raises:
            FileReadError: If the file is missing, unreadable or not UTF-8
        """
        if self.text is not None:
            return self.text

        try:
            raw = Path(self.location or self.path).read_bytes()
        except OSError as exc:
            raise FileReadError(self.path, exc.strerror or str(exc)) from exc

        try:
            return raw.decode('utf-8-sig')
        except UnicodeDecodeError as exc:
            raise FileReadError(self.path, f"not valid UTF-8 ({exc.reason})") from exc


@lru_cache(maxsize=None)
def load_language(language: str) -> Language:
    """Build (once) the tree-sitter Language for a grammar name.

    Raises:
        ValueError: If language is not supported
    """
    if language == 'typescript':
        return Language(tstypescript.language_typescript())
    if language == 'tsx':
        return Language(tstypescript.language_tsx())
    if language == 'javascript':
        return Language(tsjavascript.language())
    raise ValueError(f"Unsupported language: {language}")


def node_text(node: Node) -> str:
    """Decode the source text covered by a node."""
    return node.text.decode('utf-8', errors='replace')


class LanguageParser:
    """Error-tolerant parser for one grammar.

    A parser instance is not shared between threads: every worker builds its
    own through `from_file_extension`. Language objects are shared.
    """

    SUPPORTED_LANGUAGES = {
        '.ts': 'typescript',
        '.mts': 'typescript',
        '.cts': 'typescript',
        '.tsx': 'tsx',
        '.js': 'javascript',
        '.jsx': 'javascript',
        '.mjs': 'javascript',
        '.cjs': 'javascript',
    }

    def __init__(self, language: str):
        """Initialize parser for given grammar (typescript, tsx, javascript).

        Raises:
            ValueError: If language is not supported
        """
        self.language = language
        self.parser = Parser(load_language(language))

    def parse(self, text: str) -> Tree:
        """Parse source text. Syntax errors become ERROR nodes, never exceptions."""
        return self.parser.parse(text.encode('utf-8'))

    @classmethod
    def from_file_extension(cls, file_path: str | Path) -> Optional['LanguageParser']:
        """Create parser based on file extension.

        Returns:
            LanguageParser instance, or None if extension not supported
        """
        extension = PurePosixPath(str(file_path)).suffix.lower()
        language = cls.SUPPORTED_LANGUAGES.get(extension)
        if language:
            return cls(language)
        return None
