# src/importfix/exports.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Callable, Iterator, Sequence

from importfix.errors import MalformedExportError, UnresolvedModuleError
from importfix.resolver import resolve_import_path
from importfix.source_model import Node, SourceModel

logger = logging.getLogger(__name__)

ModuleResolver = Callable[[str, str, Sequence[str]], "str | None"]


@dataclass(frozen=True)
class ExportShape:
    path: str
    has_default_export: bool = False
    named_exports: frozenset[str] = frozenset()
    # False for files with no import/export statements at all (CommonJS, scripts).
    is_module: bool = True


@dataclass
class _ModuleScan:
    has_default_export: bool = False
    named_exports: set[str] = field(default_factory=set)
    reexport_all: list[str] = field(default_factory=list)
    is_module: bool = False


def string_value(model: SourceModel, node: Node) -> str:
    text = model.text(node)
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        return text[1:-1]
    return text


def _pattern_names(model: SourceModel, node: Node | None) -> Iterator[str]:
    if node is None:
        return
    t = node.type
    if t in ("identifier", "shorthand_property_identifier_pattern"):
        yield model.text(node)
    elif t == "pair_pattern":
        yield from _pattern_names(model, node.child_by_field_name("value"))
    elif t in ("object_assignment_pattern", "assignment_pattern"):
        yield from _pattern_names(model, node.child_by_field_name("left"))
    elif t in ("object_pattern", "array_pattern", "rest_pattern"):
        for child in node.named_children:
            yield from _pattern_names(model, child)


def _declared_names(model: SourceModel, decl: Node) -> Iterator[str]:
    if decl.type in ("lexical_declaration", "variable_declaration"):
        for declarator in decl.named_children:
            if declarator.type == "variable_declarator":
                yield from _pattern_names(model, declarator.child_by_field_name("name"))
        return
    name = decl.child_by_field_name("name")
    if name is not None:
        yield model.text(name)


def scan_exports(model: SourceModel) -> _ModuleScan:
    """
    Read the top-level export declarations of one module. Re-export-all
    targets are returned unresolved.
    """
    scan = _ModuleScan()
    for stmt in model.top_level_statements():
        if stmt.type == "import_statement":
            scan.is_module = True
            continue
        if stmt.type != "export_statement":
            continue
        scan.is_module = True

        if stmt.has_error:
            raise MalformedExportError(model.path, f"unparseable export near byte {stmt.start_byte}")

        tokens = {c.type for c in stmt.children if not c.is_named}
        if "default" in tokens:
            scan.has_default_export = True
            continue

        decl = stmt.child_by_field_name("declaration")
        if decl is not None:
            scan.named_exports.update(_declared_names(model, decl))

        has_namespace_export = False
        for child in stmt.named_children:
            if child.type == "export_clause":
                for spec in child.named_children:
                    if spec.type != "export_specifier":
                        continue
                    exported = spec.child_by_field_name("alias") or spec.child_by_field_name("name")
                    exported_name = string_value(model, exported)
                    if exported_name == "default":
                        scan.has_default_export = True
                    else:
                        scan.named_exports.add(exported_name)
            elif child.type == "namespace_export":
                has_namespace_export = True
                scan.named_exports.add(string_value(model, child.named_children[-1]))

        source = stmt.child_by_field_name("source")
        if source is not None and "*" in tokens and not has_namespace_export:
            scan.reexport_all.append(string_value(model, source))
    return scan


class ExportShapeResolver:
    """
    Computes ExportShapes for one reconciliation run.

    Each module file is parsed at most once per resolver; re-export-all chains
    are flattened with a visited set so circular re-exports terminate.
    """

    def __init__(self, search_roots: Sequence[str] = (), resolve: ModuleResolver = resolve_import_path):
        self.search_roots = tuple(search_roots)
        self._resolve = resolve
        self._scans: dict[str, _ModuleScan] = {}
        self._shapes: dict[str, ExportShape] = {}

    def resolve_path(self, from_file: str, spec: str) -> str:
        path = self._resolve(from_file, spec, self.search_roots)
        if path is None:
            raise UnresolvedModuleError(from_file, spec)
        return os.path.normpath(os.path.abspath(path))

    def resolve_spec(self, from_file: str, spec: str) -> ExportShape:
        return self.resolve(self.resolve_path(from_file, spec))

    def resolve(self, module_path: str) -> ExportShape:
        path = os.path.normpath(os.path.abspath(module_path))
        cached = self._shapes.get(path)
        if cached is not None:
            return cached

        root = self._scan(path)
        named: set[str] = set(root.named_exports)

        # Re-export-all only forwards named exports; the default flag stays single-level.
        seen = {path}
        pending = [(path, spec) for spec in root.reexport_all]
        while pending:
            from_path, spec = pending.pop(0)
            target = self._resolve(from_path, spec, self.search_roots)
            if target is None:
                logger.debug("Skipping unresolved re-export %r in %s", spec, from_path)
                continue
            target = os.path.normpath(os.path.abspath(target))
            if target in seen:
                continue
            seen.add(target)
            try:
                other = self._scan(target)
            except UnresolvedModuleError:
                logger.debug("Skipping unreadable re-export target %s", target)
                continue
            named.update(other.named_exports)
            pending.extend((target, s) for s in other.reexport_all)

        shape = ExportShape(
            path=path,
            has_default_export=root.has_default_export,
            named_exports=frozenset(named),
            is_module=root.is_module,
        )
        self._shapes[path] = shape
        return shape

    def _scan(self, path: str) -> _ModuleScan:
        cached = self._scans.get(path)
        if cached is not None:
            return cached
        try:
            model = SourceModel.from_file(path)
        except OSError as e:
            raise UnresolvedModuleError(path, path) from e
        except UnicodeDecodeError:
            logger.warning("Assuming no exports for %s: not valid UTF-8", path)
            scan = _ModuleScan(is_module=True)
        else:
            try:
                scan = scan_exports(model)
            except MalformedExportError as e:
                logger.warning("Assuming no exports: %s", e)
                scan = _ModuleScan(is_module=True)
        self._scans[path] = scan
        return scan
