"""Identifier occurrence scanning.

Every identifier-shaped token of a file becomes an Occurrence. Strings,
comments, regular expressions and JSX text hold no identifier nodes in the
tree-sitter grammars, so usage that only lives inside them is never seen.
Tokens inside import/export statements keep their module context so the
graph builder can resolve them.
"""
from dataclasses import dataclass
from typing import AbstractSet, List, Optional, Tuple
from tree_sitter import Node, Tree

from .js_import_tracker import dynamic_import_target, export_name, module_specifier, require_target
from .parser import node_text


REFERENCE = 'reference'
IMPORT = 'import'        # import { X } / import X: names an export of `module`
EXPORT = 'export'        # export { X } / export default X: no `from`
REEXPORT = 'reexport'    # export { X } from 'module'
BINDING = 'binding'      # a new local name (aliases, namespaces, patterns)
DYNAMIC = 'dynamic'      # import('module'); text holds the module specifier


@dataclass(frozen=True)
class Occurrence:
    text: str
    file: str
    line: int
    column: int
    role: str = REFERENCE
    member: bool = False  # property position: obj.text, { text: ... }, <X text=...>
    qualifier: Optional[str] = None  # `obj` in obj.text when obj is a plain identifier
    qualifies: bool = False  # token is the `obj` of a member access
    module: Optional[str] = None
    imported: Optional[str] = None
    exported: Optional[str] = None

    @property
    def key(self) -> Tuple[str, int, int, str]:
        return (self.file, self.line, self.column, self.text)


class ReferenceScanner:
    """Collect the occurrences of one parsed file."""

    IDENTIFIER_TYPES = {
        'identifier',
        'type_identifier',
        'property_identifier',
        'private_property_identifier',
        'shorthand_property_identifier',
        'shorthand_property_identifier_pattern',
    }
    MEMBER_TYPES = {'property_identifier', 'private_property_identifier'}
    QUALIFIED_PARENTS = {
        # parent type -> (object field, property field)
        'member_expression': ('object', 'property'),
        'nested_identifier': ('object', 'property'),
        'nested_type_identifier': ('module', 'name'),
    }

    def scan(self, tree: Tree, file_path: str,
             definition_sites: AbstractSet[Tuple[int, int]] = frozenset()) -> List[Occurrence]:
        """Scan a tree for identifier occurrences.

        Args:
            tree: Parsed tree-sitter Tree
            file_path: Identity of the file in the source set
            definition_sites: (line, column) of this file's declaration names,
                which are not occurrences

        Returns:
            Occurrences in source order
        """
        self._file = file_path
        self._sites = definition_sites
        occurrences: List[Occurrence] = []

        stack = [tree.root_node]
        while stack:
            node = stack.pop()

            if node.type == 'import_statement':
                occurrences.extend(self._scan_import(node))
                continue

            if node.type == 'export_statement':
                handled = self._scan_export(node)
                if handled is not None:
                    occurrences.extend(handled)
                    continue

            if node.type == 'variable_declarator' and require_target(node.child_by_field_name('value')):
                occurrences.extend(self._scan_require(node))
                continue

            if node.type == 'call_expression':
                target = dynamic_import_target(node)
                if target:
                    occurrences.append(self._occurrence(node, text=target, role=DYNAMIC, module=target))

            if node.type in self.IDENTIFIER_TYPES:
                occurrence = self._identifier(node)
                if occurrence is not None:
                    occurrences.append(occurrence)

            stack.extend(reversed(node.named_children))

        occurrences.sort(key=lambda o: (o.line, o.column))
        return occurrences

    def _occurrence(self, node: Node, **context) -> Occurrence:
        context.setdefault('text', node_text(node))
        return Occurrence(
            file=self._file,
            line=node.start_point[0] + 1,
            column=node.start_point[1] + 1,
            **context,
        )

    def _identifier(self, node: Node) -> Optional[Occurrence]:
        position = (node.start_point[0] + 1, node.start_point[1] + 1)
        if position in self._sites:
            return None

        if node.type == 'shorthand_property_identifier_pattern':
            return self._occurrence(node, role=BINDING)

        member = node.type in self.MEMBER_TYPES
        qualifier = None
        qualifies = False

        parent = node.parent
        fields = self.QUALIFIED_PARENTS.get(parent.type) if parent is not None else None
        if fields is not None:
            object_node = parent.child_by_field_name(fields[0])
            property_node = parent.child_by_field_name(fields[1])
            if _same_node(property_node, node):
                member = True
                if object_node is not None and object_node.type == 'identifier':
                    qualifier = node_text(object_node)
            elif _same_node(object_node, node):
                qualifies = True

        return self._occurrence(node, member=member, qualifier=qualifier, qualifies=qualifies)

    def _scan_import(self, node: Node) -> List[Occurrence]:
        found = []
        module = module_specifier(node.child_by_field_name('source'))

        for child in node.named_children:
            if child.type == 'import_require_clause':
                source = module_specifier(child.child_by_field_name('source'))
                for part in child.named_children:
                    if part.type == 'identifier':
                        found.append(self._occurrence(part, role=BINDING, module=source))
                        break
                continue

            if child.type != 'import_clause' or not module:
                continue

            for part in child.named_children:
                if part.type == 'identifier':
                    found.append(self._occurrence(part, role=IMPORT, module=module, imported='default'))

                elif part.type == 'namespace_import':
                    for ns_child in part.named_children:
                        if ns_child.type == 'identifier':
                            found.append(self._occurrence(ns_child, role=BINDING, module=module))

                elif part.type == 'named_imports':
                    for specifier in part.named_children:
                        if specifier.type != 'import_specifier':
                            continue
                        name_node = specifier.child_by_field_name('name')
                        alias_node = specifier.child_by_field_name('alias')
                        if name_node is not None and name_node.type != 'string':
                            found.append(self._occurrence(
                                name_node, role=IMPORT, module=module, imported=node_text(name_node)))
                        if alias_node is not None:
                            found.append(self._occurrence(alias_node, role=BINDING, module=module))
        return found

    def _scan_export(self, node: Node) -> Optional[List[Occurrence]]:
        """Occurrences of an export statement, or None to scan it as plain code."""
        source = module_specifier(node.child_by_field_name('source'))
        value = node.child_by_field_name('value')

        if value is not None and value.type == 'identifier':
            if any(child.type == 'default' for child in node.children):
                return [self._occurrence(value, role=EXPORT, exported='default')]
            return None

        found = []
        handled = False
        for child in node.named_children:
            if child.type == 'export_clause':
                handled = True
                for specifier in child.named_children:
                    if specifier.type != 'export_specifier':
                        continue
                    name_node = specifier.child_by_field_name('name')
                    alias_node = specifier.child_by_field_name('alias')
                    if name_node is None:
                        continue
                    name = export_name(name_node)
                    exported = export_name(alias_node) if alias_node is not None else name
                    if name_node.type != 'string':
                        if source:
                            found.append(self._occurrence(
                                name_node, role=REEXPORT, module=source, imported=name, exported=exported))
                        else:
                            found.append(self._occurrence(name_node, role=EXPORT, exported=exported))
                    if alias_node is not None and alias_node.type != 'string':
                        found.append(self._occurrence(alias_node, role=BINDING))

            elif child.type == 'namespace_export':
                handled = True
                for ns_child in child.named_children:
                    if ns_child.type == 'identifier':
                        found.append(self._occurrence(ns_child, role=BINDING, module=source))

        if handled or source:
            return found
        return None

    def _scan_require(self, declarator: Node) -> List[Occurrence]:
        found = []
        module = require_target(declarator.child_by_field_name('value'))
        name_node = declarator.child_by_field_name('name')
        if name_node is None:
            return found

        if name_node.type == 'identifier':
            return [self._occurrence(name_node, role=BINDING, module=module)]

        if name_node.type == 'object_pattern':
            for prop in name_node.named_children:
                if prop.type == 'shorthand_property_identifier_pattern':
                    found.append(self._occurrence(prop, role=IMPORT, module=module, imported=node_text(prop)))
                elif prop.type == 'pair_pattern':
                    key = prop.child_by_field_name('key')
                    value = prop.child_by_field_name('value')
                    if key is not None:
                        found.append(self._occurrence(key, role=IMPORT, module=module, imported=node_text(key)))
                    if value is not None and value.type == 'identifier':
                        found.append(self._occurrence(value, role=BINDING, module=module))
        return found


def _same_node(a: Optional[Node], b: Node) -> bool:
    return a is not None and a.start_byte == b.start_byte and a.end_byte == b.end_byte
