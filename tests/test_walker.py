"""Source discovery and exclude-pattern semantics."""
import pytest

from unused_finder.analyzer.walker import SourceWalker, matches_pattern
from unused_finder.config import DEFAULT_EXCLUDE_PATTERNS


@pytest.mark.parametrize('path, pattern, expected', [
    ('src/out/file.ts', 'out', True),
    ('src/layout.tsx', 'out', False),
    ('src/__tests__/a.ts', '__tests__', True),
    ('src/a.test.ts', '*.test.ts', True),
    ('src/a.ts', '*.test.ts', False),
    ('src/types/global.d.ts', '*.d.ts', True),
    ('src/generated/api/client.ts', 'src/generated/**', True),
    ('src/generator.ts', 'src/generated/**', False),
    ('src/legacy/old.ts', 'src/legacy', True),
    ('src/legacy-new/a.ts', 'src/legacy', False),
])
def test_matches_pattern(path, pattern, expected):
    assert matches_pattern(path, pattern) is expected


def test_discovery_marks_excluded_files_reference_only(write_project):
    root = write_project({
        'src/App.tsx': 'export const App = () => null;\n',
        'src/util.ts': '',
        'src/util.test.ts': '',
        'src/styles.css': '',
        'src/__tests__/deep.ts': '',
        'src/node_modules/pkg/index.ts': '',
        'lib/other.ts': '',
    })
    walker = SourceWalker(root, ['src'], ['.ts', '.tsx'], DEFAULT_EXCLUDE_PATTERNS)
    sources = walker.discover()

    assert [(s.path, s.reference_only) for s in sources] == [
        ('src/App.tsx', False),
        ('src/util.test.ts', True),
        ('src/util.ts', False),
        ('src/__tests__/deep.ts', True),
    ]
    assert all(s.location.startswith(str(root.resolve())) for s in sources)


def test_missing_search_dir_is_skipped(tmp_path):
    assert SourceWalker(tmp_path, ['src'], ['.ts']).discover() == []


def test_overlapping_search_dirs_do_not_duplicate(write_project):
    root = write_project({'src/a.ts': '', 'src/inner/b.ts': ''})
    sources = SourceWalker(root, ['src', 'src/inner'], ['.ts']).discover()

    assert [s.path for s in sources] == ['src/a.ts', 'src/inner/b.ts']
