"""End-to-end detection over the canonical React example project.

The fixture mirrors a small React app: App.tsx renders pages/Home.tsx, which
renders Card and Button. Spinner and UnusedModal are never imported, and
types/api.ts plus utils/api.ts carry a mix of used and unused exports.
"""
import dataclasses
import json

import pytest

from unused_finder.analyzer.detector import UnusedElementDetector, detect_unused_elements
from unused_finder.analyzer.parser import SourceFile
from unused_finder.config import Config, ConfigurationError, DetectionTypes

from helpers import corpus


@pytest.fixture
def report(react_root):
    return detect_unused_elements(root=react_root, jobs=4)


def unused_of(report):
    return {(e.name, e.kind.value) for e in report.unused}


def test_unused_spinner_component(report):
    """Spinner is defined and exported but never imported."""
    assert ('Spinner', 'Component') in unused_of(report)


def test_button_rendered_by_imported_page_is_used(report):
    assert ('Button', 'Component') not in unused_of(report)
    assert ('Home', 'Component') not in unused_of(report)
    assert ('Card', 'Component') not in unused_of(report)


def test_enum_usage(report):
    unused = unused_of(report)

    assert ('Status', 'Enum') not in unused
    assert ('UnusedStatus', 'Enum') in unused


def test_constants(report):
    unused = unused_of(report)

    assert ('UNUSED_CONSTANT', 'Variable') in unused
    assert ('USED_CONSTANT', 'Variable') not in unused


def test_unimported_function(report):
    assert ('calculateTotal', 'Function') in unused_of(report)
    assert ('fetchUsers', 'Function') not in unused_of(report)


def test_full_unused_list_is_sorted_by_file_then_line(report):
    listed = [(e.file, e.line, e.name) for e in report.unused]

    assert listed == [
        ('src/App.tsx', 6, 'App'),
        ('src/components/spinner.tsx', 8, 'Spinner'),
        ('src/components/unused-modal.tsx', 10, 'UnusedModal'),
        ('src/types/api.ts', 14, 'UserListResponse'),
        ('src/types/api.ts', 24, 'UnusedDataType'),
        ('src/types/api.ts', 37, 'UnusedStatus'),
        ('src/utils/api.ts', 8, 'fetchPosts'),
        ('src/utils/api.ts', 13, 'formatDate'),
        ('src/utils/api.ts', 17, 'unusedHelper'),
        ('src/utils/api.ts', 22, 'UNUSED_CONSTANT'),
        ('src/utils/api.ts', 24, 'calculateTotal'),
    ]


def test_category_counts(report):
    counts = {name: stats.to_dict() for name, stats in report.by_category}

    assert counts == {
        'components': {'total': 6, 'used': 3, 'unused': 3},
        'types': {'total': 2, 'used': 0, 'unused': 2},
        'interfaces': {'total': 7, 'used': 7, 'unused': 0},
        'functions': {'total': 5, 'used': 1, 'unused': 4},
        'variables': {'total': 2, 'used': 1, 'unused': 1},
        'enums': {'total': 2, 'used': 1, 'unused': 1},
    }
    assert report.files_scanned == 8
    assert report.warnings == ()


def test_entry_point_is_a_root(react_root):
    """Declarations of an entry-point file are used without any reference."""
    report = detect_unused_elements(root=react_root, custom_config=Config(entry_points=['src/App.tsx']))

    assert ('App', 'Component') not in unused_of(report)
    assert report.unused_count == 10


def test_disabled_enums_report_zero():
    files = {
        'src/modes.ts': "export enum A { X }\nexport enum B { Y }\nenum C { Z }\nexport const flag = 1;\n",
    }
    config = Config(detection_types=DetectionTypes(enums=False))
    report = UnusedElementDetector(config, jobs=1).detect(corpus(files))

    assert report.categories['enums'].to_dict() == {'total': 0, 'used': 0, 'unused': 0}
    assert report.categories['variables'].total == 1


def test_reports_are_deterministic(react_root):
    first = detect_unused_elements(root=react_root, jobs=1).to_json()
    second = detect_unused_elements(root=react_root, jobs=8).to_json()

    assert first == second
    assert json.loads(first)['summary'] == {'total': 24, 'used': 13, 'unused': 11}


def test_unreadable_file_is_skipped_with_warning(tmp_path):
    good = tmp_path / 'good.ts'
    good.write_text("export const value = 1;\n", encoding='utf-8')
    bad = tmp_path / 'bad.ts'
    bad.write_bytes(b"export const broken = '\xff\xfe';\n")

    report = UnusedElementDetector(Config(), jobs=2).detect([
        SourceFile(path='good.ts', location=str(good)),
        SourceFile(path='bad.ts', location=str(bad)),
        SourceFile(path='missing.ts', location=str(tmp_path / 'missing.ts')),
    ])

    assert report.files_scanned == 1
    assert len(report.warnings) == 2
    assert report.warnings[0].startswith('bad.ts')
    assert report.warnings[1].startswith('missing.ts')
    assert [e.name for e in report.unused] == ['value']


def test_unencodable_preloaded_text_is_skipped_with_warning():
    report = UnusedElementDetector(Config(), jobs=2).detect([
        SourceFile(path='a.ts', text="export const lone = '\ud800';\n"),
        SourceFile(path='b.ts', text="export const value = 1;\n"),
    ])

    assert report.files_scanned == 1
    assert len(report.warnings) == 1
    assert report.warnings[0].startswith('a.ts')
    assert [e.name for e in report.unused] == ['value']


def test_file_analysis_is_read_only():
    """Worker results cannot be changed after they leave the worker."""
    source = "import { a } from './a';\nexport { b } from './b';\nexport * from './c';\nexport const d = a;\n"
    analysis = UnusedElementDetector(Config(), jobs=1).analyze_file(SourceFile(path='m.ts', text=source))
    links = analysis.links

    assert links.imports['a'].source_module == './a'
    assert links.exports == {'d': 'd'}
    assert links.star_reexports == ('./c',)
    with pytest.raises(TypeError):
        links.imports['x'] = links.imports['a']
    with pytest.raises(TypeError):
        links.reexports['y'] = links.reexports['b']
    with pytest.raises(dataclasses.FrozenInstanceError):
        links.exports = {}


def test_empty_source_set():
    report = UnusedElementDetector(Config(), jobs=1).detect([])

    assert report.total == 0
    assert report.unused == ()
    assert [name for name, _ in report.by_category] == [
        'components', 'types', 'interfaces', 'functions', 'variables', 'enums',
    ]
    assert all(stats.total == 0 for _, stats in report.by_category)


def test_reference_only_files_count_usage_but_declare_nothing():
    sources = [
        SourceFile(path='src/math.ts', text="export function add() {}\nexport function sub() {}\n"),
        SourceFile(path='src/math.test.ts', text="import { add } from './math';\nconst local = 1;\nadd();\n",
                   reference_only=True),
    ]
    report = UnusedElementDetector(Config(), jobs=2).detect(sources)

    assert [(e.file, e.name) for e in report.unused] == [('src/math.ts', 'sub')]


def test_invalid_job_count():
    with pytest.raises(ConfigurationError):
        UnusedElementDetector(Config(), jobs=0)


def test_duplicate_paths_are_scanned_once():
    sources = corpus({'src/a.ts': "export const a = 1;\n"}) * 2
    report = UnusedElementDetector(Config(), jobs=2).detect(sources)

    assert report.files_scanned == 1
    assert report.total == 1
