"""Parsing helpers shared by the test modules."""
from pathlib import Path

from unused_finder.analyzer.extractor import DeclarationExtractor
from unused_finder.analyzer.js_import_tracker import JSImportTracker
from unused_finder.analyzer.parser import LanguageParser, SourceFile


FIXTURES_DIR = Path(__file__).parent / 'fixtures'
REACT_ROOT = FIXTURES_DIR / 'react'


def parse(code: str, path: str = 'sample.tsx'):
    """Parse code as if it lived at `path`."""
    return LanguageParser.from_file_extension(path).parse(code)


def extract(code: str, path: str = 'sample.tsx', categories=None):
    """Run link tracking and extraction on a snippet."""
    tree = parse(code, path)
    links = JSImportTracker().analyze_module(tree.root_node)
    source = SourceFile(path=path, text=code)
    return DeclarationExtractor(categories).extract(
        tree, code, path, links, components_eligible=source.components_eligible,
    )


def kinds(extraction) -> dict:
    """{name: kind value} of an extraction."""
    return {d.name: d.kind.value for d in extraction.declarations}


def corpus(files: dict) -> list:
    """In-memory source set from {path: text}."""
    return [SourceFile(path=path, text=text) for path, text in files.items()]
