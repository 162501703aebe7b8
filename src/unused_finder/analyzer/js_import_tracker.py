from dataclasses import dataclass, field
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, Set
from tree_sitter import Node

from .parser import node_text


REQUIRE_FUNCTIONS = {'require'}


@dataclass(frozen=True)
class ImportInfo:
    source_module: str
    original_name: Optional[str] = None  # 'default', an export name, or None for the module object
    is_namespace: bool = False


@dataclass(frozen=True)
class ModuleLinks:
    """What a single file pulls in from and hands out to other modules.

    The tracker fills a draft while walking, then hands out a `frozen()`
    copy with read-only mappings.
    """
    imports: Mapping[str, ImportInfo] = field(default_factory=dict)  # local name -> source
    exports: Mapping[str, str] = field(default_factory=dict)  # exported name -> local name
    reexports: Mapping[str, ImportInfo] = field(default_factory=dict)  # exported name -> source
    star_reexports: Sequence[str] = field(default_factory=list)

    @property
    def exported_locals(self) -> Set[str]:
        return set(self.exports.values())

    def frozen(self) -> 'ModuleLinks':
        return ModuleLinks(
            imports=MappingProxyType(dict(self.imports)),
            exports=MappingProxyType(dict(self.exports)),
            reexports=MappingProxyType(dict(self.reexports)),
            star_reexports=tuple(self.star_reexports),
        )


def module_specifier(node: Optional[Node]) -> Optional[str]:
    """Return the module string of a `string` node, without quotes."""
    if node is None or node.type != 'string':
        return None
    for child in node.named_children:
        if child.type == 'string_fragment':
            return node_text(child)
    return node_text(node).strip('"\'`') or None


def export_name(node: Node) -> str:
    """Name of an import/export specifier part (`{ "a-b" as x }` is legal)."""
    if node.type == 'string':
        return module_specifier(node) or ''
    return node_text(node)


def require_target(node: Optional[Node]) -> Optional[str]:
    """Return the module of a `require('...')` call, or None."""
    if node is None or node.type != 'call_expression':
        return None
    function_node = node.child_by_field_name('function')
    args_node = node.child_by_field_name('arguments')
    if function_node is None or node_text(function_node) not in REQUIRE_FUNCTIONS:
        return None
    if args_node is None or args_node.named_child_count == 0:
        return None
    return module_specifier(args_node.named_children[0])


def dynamic_import_target(node: Node) -> Optional[str]:
    """Return the module of an `import('...')` call, or None."""
    if node.type != 'call_expression':
        return None
    function_node = node.child_by_field_name('function')
    if function_node is None or function_node.type != 'import':
        return None
    args_node = node.child_by_field_name('arguments')
    if args_node is None or args_node.named_child_count == 0:
        return None
    return module_specifier(args_node.named_children[0])


def declared_names(declaration: Node) -> List[Node]:
    """Name nodes bound by a top-level declaration (used for export tables)."""
    if declaration.type in ('lexical_declaration', 'variable_declaration'):
        names = []
        for declarator in declaration.named_children:
            if declarator.type == 'variable_declarator':
                names.extend(pattern_identifiers(declarator.child_by_field_name('name')))
        return names

    if declaration.type == 'ambient_declaration':
        names = []
        for child in declaration.named_children:
            names.extend(declared_names(child))
        return names

    name_node = declaration.child_by_field_name('name')
    if name_node is not None and name_node.type in ('identifier', 'type_identifier'):
        return [name_node]
    return []


def pattern_identifiers(pattern: Optional[Node]) -> List[Node]:
    """Every identifier bound by a binding pattern, in source order."""
    if pattern is None:
        return []
    if pattern.type in ('identifier', 'shorthand_property_identifier_pattern'):
        return [pattern]

    found = []
    if pattern.type == 'pair_pattern':
        return pattern_identifiers(pattern.child_by_field_name('value'))
    if pattern.type in ('assignment_pattern', 'object_assignment_pattern'):
        return pattern_identifiers(pattern.child_by_field_name('left'))
    if pattern.type in ('object_pattern', 'array_pattern', 'rest_pattern'):
        for child in pattern.named_children:
            found.extend(pattern_identifiers(child))
    return found


class JSImportTracker:
    """Builds the import map and export table of one parsed file."""

    def analyze_module(self, root_node: Node) -> ModuleLinks:
        """
        Walks the tree once, collecting ESM imports and exports plus CommonJS
        `require` bindings (at any depth).
        """
        links = ModuleLinks()

        stack = [root_node]
        while stack:
            node = stack.pop()

            if node.type == 'import_statement':
                self._track_import(node, links)
                continue

            if node.type == 'export_statement':
                self._track_export(node, links)

            elif node.type == 'variable_declarator':
                self._track_require(node, links)

            stack.extend(reversed(node.named_children))

        return links.frozen()

    def _track_import(self, node: Node, links: ModuleLinks):
        module_name = module_specifier(node.child_by_field_name('source'))

        for child in node.named_children:
            # import x = require('mod')
            if child.type == 'import_require_clause':
                source = module_specifier(child.child_by_field_name('source'))
                for part in child.named_children:
                    if part.type == 'identifier' and source:
                        links.imports[node_text(part)] = ImportInfo(source, None, is_namespace=True)
                        break
                continue

            if child.type != 'import_clause' or not module_name:
                continue

            # import x, { y } from 'mod' / import * as ns from 'mod'
            for part in child.named_children:
                if part.type == 'identifier':
                    links.imports[node_text(part)] = ImportInfo(module_name, 'default')

                elif part.type == 'namespace_import':
                    for ns_child in part.named_children:
                        if ns_child.type == 'identifier':
                            links.imports[node_text(ns_child)] = ImportInfo(module_name, None, is_namespace=True)

                elif part.type == 'named_imports':
                    for specifier in part.named_children:
                        if specifier.type != 'import_specifier':
                            continue
                        name_node = specifier.child_by_field_name('name')
                        alias_node = specifier.child_by_field_name('alias')
                        if name_node is None:
                            continue
                        original = export_name(name_node)
                        local = node_text(alias_node) if alias_node is not None else original
                        if original and local:
                            links.imports[local] = ImportInfo(module_name, original)

    def _track_export(self, node: Node, links: ModuleLinks):
        source = module_specifier(node.child_by_field_name('source'))
        declaration = node.child_by_field_name('declaration')
        value = node.child_by_field_name('value')
        is_default = any(child.type == 'default' for child in node.children)

        if declaration is not None:
            names = declared_names(declaration)
            for name_node in names:
                local = node_text(name_node)
                links.exports[local] = local
            if is_default and names:
                links.exports['default'] = node_text(names[0])
            return

        if value is not None:
            # export default Name;
            if is_default and value.type == 'identifier':
                links.exports['default'] = node_text(value)
            return

        for child in node.named_children:
            if child.type == 'export_clause':
                for specifier in child.named_children:
                    if specifier.type != 'export_specifier':
                        continue
                    name_node = specifier.child_by_field_name('name')
                    alias_node = specifier.child_by_field_name('alias')
                    if name_node is None:
                        continue
                    name = export_name(name_node)
                    exported = export_name(alias_node) if alias_node is not None else name
                    if source:
                        links.reexports[exported] = ImportInfo(source, name)
                    else:
                        links.exports[exported] = name
                return

            if child.type == 'namespace_export' and source:
                # export * as ns from 'mod'
                for ns_child in child.named_children:
                    if ns_child.type in ('identifier', 'string'):
                        links.reexports[export_name(ns_child)] = ImportInfo(source, None, is_namespace=True)
                return

        # export * from 'mod'
        if source and any(child.type == '*' for child in node.children):
            links.star_reexports.append(source)

    def _track_require(self, declarator: Node, links: ModuleLinks):
        module_name = require_target(declarator.child_by_field_name('value'))
        if not module_name:
            return

        name_node = declarator.child_by_field_name('name')
        if name_node is None:
            return

        # const x = require('mod')
        if name_node.type == 'identifier':
            links.imports[node_text(name_node)] = ImportInfo(module_name, None, is_namespace=True)
            return

        # const { a, b: c } = require('mod')
        if name_node.type == 'object_pattern':
            for prop in name_node.named_children:
                if prop.type == 'shorthand_property_identifier_pattern':
                    name = node_text(prop)
                    links.imports[name] = ImportInfo(module_name, name)
                elif prop.type == 'pair_pattern':
                    key = prop.child_by_field_name('key')
                    value = prop.child_by_field_name('value')
                    if key is not None and value is not None and value.type == 'identifier':
                        links.imports[node_text(value)] = ImportInfo(module_name, node_text(key))
