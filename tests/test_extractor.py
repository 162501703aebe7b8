"""Declaration extraction: category rules, precedence, gating and suppression."""
import pytest

from helpers import extract, kinds


def test_component_rules_in_tsx():
    """Capitalized function-valued bindings in .tsx files are components."""
    code = """
import React, { memo, forwardRef } from 'react';

export function Header() { return <h1 />; }
export const Footer = () => <footer />;
const Sidebar = function () { return <aside />; };
export const Memoized = memo(() => <div />);
export const Forwarded = React.forwardRef((props, ref) => <input ref={ref} />);
export const Typed: React.FC<Props> = ({ title }) => <p>{title}</p>;
"""
    found = kinds(extract(code, 'layout.tsx'))

    for name in ('Header', 'Footer', 'Sidebar', 'Memoized', 'Forwarded', 'Typed'):
        assert found[name] == 'Component', f"{name} should be a Component, got {found.get(name)}"


def test_no_components_outside_jsx_files():
    """The same shapes in a .ts file are functions and variables."""
    code = """
export function Header() { return null; }
export const Footer = () => null;
export const Memoized = memo(Footer);
"""
    found = kinds(extract(code, 'layout.ts'))

    assert found == {'Header': 'Function', 'Footer': 'Function', 'Memoized': 'Variable'}


def test_lowercase_bindings_are_functions_and_variables():
    code = """
export const useThing = () => 1;
export async function loadData() {}
function* ids() { yield 1; }
export const LIMIT = 10;
let counter = 0;
var legacy = 'x';
"""
    found = kinds(extract(code, 'hooks.tsx'))

    assert found == {
        'useThing': 'Function',
        'loadData': 'Function',
        'ids': 'Function',
        'LIMIT': 'Variable',
        'counter': 'Variable',
        'legacy': 'Variable',
    }


def test_types_interfaces_and_enums():
    code = """
export type Id = string;
type Local = { id: Id };
export interface User { id: Id }
interface Hidden {}
export enum Status { ON, OFF }
const enum Flags { A = 1 }
declare enum Ambient { X }
"""
    found = kinds(extract(code, 'types.ts'))

    assert found == {
        'Id': 'Type',
        'Local': 'Type',
        'User': 'Interface',
        'Hidden': 'Interface',
        'Status': 'Enum',
        'Flags': 'Enum',
        'Ambient': 'Enum',
    }


def test_only_top_level_declarations():
    """Nested functions, locals and class members are not declarations."""
    code = """
export function outer() {
  const inner = () => 1;
  function helper() {}
  return inner() + helper();
}
class Store {
  load() {}
}
"""
    found = kinds(extract(code, 'nested.ts'))

    assert found == {'outer': 'Function'}


def test_destructured_bindings_are_variables():
    code = "export const { alpha, beta: renamed } = config;\nconst [first, ...rest] = list;\n"
    found = kinds(extract(code, 'values.ts'))

    assert found == {'alpha': 'Variable', 'renamed': 'Variable', 'first': 'Variable', 'rest': 'Variable'}


def test_require_bindings_are_not_declarations():
    code = "const fs = require('fs');\nconst { join } = require('path');\nconst value = 1;\n"
    found = kinds(extract(code, 'cjs.js'))

    assert found == {'value': 'Variable'}


def test_class_components():
    code = """
import React from 'react';
export class Legacy extends React.Component {}
class Pure extends PureComponent {}
class Service {}
"""
    found = kinds(extract(code, 'legacy.tsx'))

    assert found == {'Legacy': 'Component', 'Pure': 'Component'}


def test_export_default_function_is_declared_once():
    extraction = extract("export default function Page() { return <main />; }\n", 'page.tsx')

    assert [(d.name, d.kind.value, d.is_exported) for d in extraction.declarations] == [
        ('Page', 'Component', True)
    ]


def test_export_clause_does_not_declare():
    """`export { X }` marks X exported; it never creates a second declaration."""
    code = "const helper = () => 1;\nexport { helper };\nexport { helper as alias };\n"
    extraction = extract(code, 'reexport.ts')

    assert len(extraction.declarations) == 1
    helper = extraction.declarations[0]
    assert helper.name == 'helper'
    assert helper.is_exported


def test_positions_are_one_based():
    code = "\n\nexport const value = 1;\n"
    declaration = extract(code, 'pos.ts').declarations[0]

    assert (declaration.line, declaration.column) == (3, 14)
    assert declaration.id == 'pos.ts::Variable::value'
    assert (3, 14) in extract(code, 'pos.ts').definition_sites


def test_interface_merging_keeps_first_definition():
    code = "interface Box { a: number }\ninterface Box { b: number }\n"
    extraction = extract(code, 'box.ts')

    assert [(d.name, d.line) for d in extraction.declarations] == [('Box', 1)]
    # both name tokens are definition sites, neither counts as usage
    assert {(1, 11), (2, 11)} <= extraction.definition_sites


@pytest.mark.parametrize('disabled', ['components', 'types', 'interfaces', 'functions', 'variables', 'enums'])
def test_category_gating(disabled):
    """Disabling a category removes its declarations and nothing else."""
    code = """
export const Widget = () => <div />;
export type Alias = string;
export interface Shape {}
export function compute() {}
export const LIMIT = 1;
export enum Mode { A }
"""
    categories = {'components', 'types', 'interfaces', 'functions', 'variables', 'enums'} - {disabled}
    everything = {d.name: d.kind.category for d in extract(code, 'all.tsx').declarations}
    gated = {d.name: d.kind.category for d in extract(code, 'all.tsx', categories).declarations}

    assert disabled not in gated.values()
    assert gated == {name: cat for name, cat in everything.items() if cat != disabled}


def test_gating_does_not_reclassify_components():
    """With components off, a component is dropped, not demoted to a function."""
    extraction = extract("export const Widget = () => <div />;\n", 'w.tsx', categories={'functions', 'variables'})

    assert extraction.declarations == ()
    assert 'Widget' in extraction.local_names


def test_ignore_comment_suppresses_declaration():
    code = """
// @ts-unused-ignore
export const kept = 1;
export const inline = 2; // @ts-unused-ignore
export const plain = 3;
"""
    suppressed = {d.name: d.suppressed for d in extract(code, 'ignored.ts').declarations}

    assert suppressed == {'kept': True, 'inline': True, 'plain': False}


def test_ignore_marker_outside_comments_is_ordinary_text():
    code = """
export const message = '@ts-unused-ignore';
const label = `// @ts-unused-ignore`;
export const after = 1;
/* @ts-unused-ignore */
export const blocked = 2;
"""
    suppressed = {d.name: d.suppressed for d in extract(code, 'strings.ts').declarations}

    assert suppressed == {'message': False, 'label': False, 'after': False, 'blocked': False}


def test_malformed_source_degrades_without_raising():
    code = "export const good = 1;\nexport function (((\nexport interface Still {}\n"
    names = set(kinds(extract(code, 'broken.ts')))

    assert 'good' in names


def test_wrapped_initializers_are_unwrapped():
    code = "export const Handler = ((event) => event) as Callback;\nexport const Lazy = lazy(() => import('./x'));\n"
    found = kinds(extract(code, 'wrapped.tsx'))

    assert found == {'Handler': 'Component', 'Lazy': 'Component'}
