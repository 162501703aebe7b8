"""Occurrence scanning: strings and comments, definition sites, import/export roles."""
from unused_finder.analyzer.reference_scanner import (
    BINDING,
    DYNAMIC,
    EXPORT,
    IMPORT,
    REEXPORT,
    REFERENCE,
    ReferenceScanner,
)

from helpers import extract, parse


def scan(code, path='sample.tsx'):
    extraction = extract(code, path)
    return ReferenceScanner().scan(parse(code, path), path, extraction.definition_sites)


def texts(occurrences, role=None):
    return [o.text for o in occurrences if role is None or o.role == role]


def test_strings_and_comments_are_not_occurrences():
    code = """
// Target is mentioned here
/* and Target here */
const label = "Target";
const tpl = `Target ${other}`;
const re = /Target/;
"""
    found = texts(scan(code, 'strings.ts'))

    assert 'Target' not in found
    assert 'other' in found, "template substitutions are code"


def test_jsx_text_is_not_an_occurrence():
    found = texts(scan("const view = <p>Target</p>;\n", 'view.tsx'))

    assert 'Target' not in found
    assert 'p' in found


def test_definition_site_is_skipped():
    code = "export const value = 1;\nconsole.log(value);\n"
    occurrences = [o for o in scan(code, 'a.ts') if o.text == 'value']

    assert [(o.line, o.column) for o in occurrences] == [(2, 13)]
    assert occurrences[0].role == REFERENCE


def test_import_roles():
    code = """
import Default, { named, original as alias } from './mod';
import * as ns from './ns';
"""
    by_text = {o.text: o for o in scan(code, 'imports.ts')}

    assert by_text['Default'].role == IMPORT and by_text['Default'].imported == 'default'
    assert by_text['named'].role == IMPORT and by_text['named'].module == './mod'
    assert by_text['original'].role == IMPORT and by_text['original'].imported == 'original'
    assert by_text['alias'].role == BINDING
    assert by_text['ns'].role == BINDING and by_text['ns'].module == './ns'


def test_export_markers():
    code = """
const a = 1;
const b = 2;
export { a, b as renamed };
export default a;
export { c } from './c';
"""
    occurrences = [o for o in scan(code, 'exports.ts') if o.line >= 4]

    markers = [(o.text, o.role, o.exported) for o in occurrences]
    assert ('a', EXPORT, 'a') in markers
    assert ('b', EXPORT, 'renamed') in markers
    assert ('renamed', BINDING, None) in markers
    assert ('a', EXPORT, 'default') in markers
    assert ('c', REEXPORT, 'c') in markers


def test_member_accesses_carry_their_qualifier():
    code = "import * as api from './api';\napi.fetchUsers();\nlet s: api.User;\n"
    by_text = {o.text: o for o in scan(code, 'member.ts') if o.line > 1}

    assert by_text['fetchUsers'].member and by_text['fetchUsers'].qualifier == 'api'
    assert by_text['User'].member and by_text['User'].qualifier == 'api'
    assert all(o.qualifies for o in scan(code, 'member.ts') if o.text == 'api' and o.line > 1)


def test_enum_member_access():
    code = "setStatus(Status.PENDING);\n"
    by_text = {o.text: o for o in scan(code, 'enum.ts')}

    assert by_text['Status'].role == REFERENCE and by_text['Status'].qualifies
    assert by_text['PENDING'].member and by_text['PENDING'].qualifier == 'Status'


def test_dynamic_import_and_require():
    code = "const lazy = import('./lazy');\nconst { helper } = require('./helpers');\n"
    occurrences = scan(code, 'dyn.js')

    dynamic = [o for o in occurrences if o.role == DYNAMIC]
    assert [o.module for o in dynamic] == ['./lazy']
    imported = [o for o in occurrences if o.role == IMPORT]
    assert [(o.text, o.module) for o in imported] == [('helper', './helpers')]


def test_jsx_and_type_references():
    code = """
import { Card } from './card';
type Props = { item: Item };
export const List = ({ item }: Props) => <Card item={item} />;
"""
    found = texts(scan(code, 'list.tsx'), REFERENCE)

    assert 'Card' in found
    assert 'Item' in found
    assert 'Props' in found
