"""Top-level declaration extraction from parsed syntax trees."""
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Set, Tuple
from tree_sitter import Node, Tree

from .js_import_tracker import ModuleLinks, pattern_identifiers, require_target
from .parser import node_text


IGNORE_MARKER = '@ts-unused-ignore'


class ElementKind(str, Enum):
    """The six kinds of program element the detector reports on."""
    COMPONENT = 'Component'
    TYPE = 'Type'
    INTERFACE = 'Interface'
    FUNCTION = 'Function'
    VARIABLE = 'Variable'
    ENUM = 'Enum'

    @property
    def category(self) -> str:
        return CATEGORIES[self]


CATEGORIES = {
    ElementKind.COMPONENT: 'components',
    ElementKind.TYPE: 'types',
    ElementKind.INTERFACE: 'interfaces',
    ElementKind.FUNCTION: 'functions',
    ElementKind.VARIABLE: 'variables',
    ElementKind.ENUM: 'enums',
}

ALL_CATEGORIES = frozenset(CATEGORIES.values())


@dataclass(frozen=True)
class Declaration:
    """A named top-level program element."""
    name: str
    kind: ElementKind
    file: str
    line: int
    column: int
    end_line: int
    is_exported: bool = False
    suppressed: bool = False

    @property
    def id(self) -> str:
        return f"{self.file}::{self.kind.value}::{self.name}"

    def spans(self, file: str, line: int) -> bool:
        return file == self.file and self.line <= line <= self.end_line


@dataclass(frozen=True)
class Extraction:
    """Result of extracting one file."""
    declarations: Tuple[Declaration, ...]
    definition_sites: FrozenSet[Tuple[int, int]]  # (line, column) of every top-level name token
    local_names: FrozenSet[str]  # every top-level binding, whatever its kind


class DeclarationExtractor:
    """Apply the category rules to the top-level statements of one file.

    Precedence between the value-bound kinds is Component > Function >
    Variable and is decided before gating, so turning a category off drops
    its declarations without reassigning them to another kind.
    """

    FUNCTION_VALUES = {'arrow_function', 'function_expression', 'function', 'generator_function'}
    FUNCTION_DECLARATIONS = {'function_declaration', 'generator_function_declaration', 'function_signature'}
    CLASS_DECLARATIONS = {'class_declaration', 'abstract_class_declaration'}
    COMPONENT_WRAPPERS = {
        'memo', 'forwardRef', 'lazy',
        'React.memo', 'React.forwardRef', 'React.lazy',
    }
    COMPONENT_BASES = {'Component', 'PureComponent', 'React.Component', 'React.PureComponent'}
    # Expression wrappers that do not change what a binding holds
    TRANSPARENT_EXPRESSIONS = {
        'parenthesized_expression', 'as_expression', 'satisfies_expression',
        'non_null_expression', 'type_assertion',
    }

    def __init__(self, categories: Optional[Iterable[str]] = None):
        """Initialize extractor.

        Args:
            categories: Enabled category names (e.g. 'components', 'enums').
                None enables all of them.
        """
        self.categories = ALL_CATEGORIES if categories is None else frozenset(categories)

    def extract(self, tree: Tree, source_code: str, file_path: str,
                links: ModuleLinks, components_eligible: bool,
                definitions: bool = True) -> Extraction:
        """Extract the declarations of one file.

        Args:
            tree: Parsed tree-sitter Tree
            source_code: File text (used for ignore comments)
            file_path: Identity of the file in the source set
            links: Import/export table of the same file
            components_eligible: True for JSX-capable files
            definitions: False for reference-only files, which keep their
                local names and definition sites but declare nothing

        Returns:
            Extraction with gated declarations, sorted by position
        """
        lines = source_code.split('\n')
        marked = self._marker_rows(tree.root_node)
        exported = links.exported_locals

        found: List[Declaration] = []
        sites: Set[Tuple[int, int]] = set()
        names: Set[str] = set()

        for statement in tree.root_node.named_children:
            suppressed = self._is_suppressed(marked, lines, statement.start_point[0])
            is_export = statement.type == 'export_statement'

            for kind, name_node, end_node in self._candidates(statement, components_eligible):
                name = node_text(name_node)
                line = name_node.start_point[0] + 1
                column = name_node.start_point[1] + 1
                sites.add((line, column))
                names.add(name)
                found.append(Declaration(
                    name=name,
                    kind=kind,
                    file=file_path,
                    line=line,
                    column=column,
                    end_line=end_node.end_point[0] + 1,
                    is_exported=is_export or name in exported,
                    suppressed=suppressed,
                ))

        declarations = []
        seen = set()
        if definitions:
            for declaration in found:
                key = (declaration.name, declaration.kind)
                # interface merging and overloads: first definition wins
                if key in seen or declaration.kind.category not in self.categories:
                    continue
                seen.add(key)
                declarations.append(declaration)

        declarations.sort(key=lambda d: (d.line, d.column, d.kind.value))
        return Extraction(tuple(declarations), frozenset(sites), frozenset(names))

    def _candidates(self, statement: Node, components_eligible: bool):
        """Yield (kind, name node, extent node) for a top-level statement."""
        if statement.type == 'export_statement':
            declaration = statement.child_by_field_name('declaration')
            if declaration is not None:
                yield from self._candidates(declaration, components_eligible)
            return

        if statement.type == 'ambient_declaration':
            for child in statement.named_children:
                yield from self._candidates(child, components_eligible)
            return

        if statement.type == 'type_alias_declaration':
            yield from self._named(statement, ElementKind.TYPE)
        elif statement.type == 'interface_declaration':
            yield from self._named(statement, ElementKind.INTERFACE)
        elif statement.type == 'enum_declaration':
            yield from self._named(statement, ElementKind.ENUM)

        elif statement.type in self.FUNCTION_DECLARATIONS:
            name_node = statement.child_by_field_name('name')
            if name_node is not None:
                is_component = (
                    components_eligible
                    and statement.type == 'function_declaration'
                    and _is_capitalized(node_text(name_node))
                )
                kind = ElementKind.COMPONENT if is_component else ElementKind.FUNCTION
                yield kind, name_node, statement

        elif statement.type in self.CLASS_DECLARATIONS:
            name_node = statement.child_by_field_name('name')
            if name_node is not None and components_eligible and self._extends_component(statement):
                yield ElementKind.COMPONENT, name_node, statement

        elif statement.type in ('lexical_declaration', 'variable_declaration'):
            for declarator in statement.named_children:
                if declarator.type == 'variable_declarator':
                    yield from self._bindings(declarator, components_eligible)

    def _named(self, statement: Node, kind: ElementKind):
        name_node = statement.child_by_field_name('name')
        if name_node is not None:
            yield kind, name_node, statement

    def _bindings(self, declarator: Node, components_eligible: bool):
        name_node = declarator.child_by_field_name('name')
        value = self._unwrap(declarator.child_by_field_name('value'))
        if name_node is None or require_target(value):
            return

        if name_node.type != 'identifier':
            for identifier in pattern_identifiers(name_node):
                yield ElementKind.VARIABLE, identifier, declarator
            return

        capitalized = _is_capitalized(node_text(name_node))
        if value is not None and value.type in self.FUNCTION_VALUES:
            if components_eligible and capitalized:
                yield ElementKind.COMPONENT, name_node, declarator
            else:
                yield ElementKind.FUNCTION, name_node, declarator
        elif components_eligible and capitalized and self._is_wrapped_component(value):
            yield ElementKind.COMPONENT, name_node, declarator
        else:
            yield ElementKind.VARIABLE, name_node, declarator

    def _unwrap(self, node: Optional[Node]) -> Optional[Node]:
        while node is not None and node.type in self.TRANSPARENT_EXPRESSIONS:
            inner = [child for child in node.named_children if child.type not in ('type_annotation', 'type_arguments')]
            if not inner:
                break
            node = inner[0]
        return node

    def _is_wrapped_component(self, value: Optional[Node]) -> bool:
        """memo(...), forwardRef(...), lazy(...) and their React.* forms."""
        if value is None or value.type != 'call_expression':
            return False
        function_node = value.child_by_field_name('function')
        return function_node is not None and node_text(function_node) in self.COMPONENT_WRAPPERS

    def _extends_component(self, class_node: Node) -> bool:
        for child in class_node.named_children:
            if child.type != 'class_heritage':
                continue
            for clause in child.named_children:
                if clause.type == 'extends_clause':
                    for base in clause.named_children:
                        if node_text(base) in self.COMPONENT_BASES:
                            return True
                # tree-sitter-javascript has no extends_clause wrapper
                elif node_text(clause) in self.COMPONENT_BASES:
                    return True
        return False

    @staticmethod
    def _marker_rows(root: Node) -> Set[int]:
        """Rows holding a `//` comment that carries the ignore marker."""
        rows: Set[int] = set()
        stack = [root]
        while stack:
            node = stack.pop()
            if node.type == 'comment':
                text = node_text(node)
                if text.startswith('//') and IGNORE_MARKER in text:
                    rows.add(node.start_point[0])
                continue
            stack.extend(node.children)
        return rows

    @staticmethod
    def _is_suppressed(marked: Set[int], lines: List[str], row: int) -> bool:
        """An ignore comment inline on the statement's first line, or alone on the line above."""
        if row in marked:
            return True
        return row - 1 in marked and lines[row - 1].lstrip().startswith('//')


def _is_capitalized(name: str) -> bool:
    return name[:1].isupper()
