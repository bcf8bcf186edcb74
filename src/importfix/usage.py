# src/importfix/usage.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator

from importfix.exports import string_value
from importfix.source_model import Node, SourceModel


@dataclass(frozen=True)
class NamedSpecifier:
    node: Node
    imported: str
    local: str


@dataclass
class SpecifierIndex:
    """Lookup view over the specifiers of one import statement."""

    statement: Node
    source: str
    default_name: str | None = None
    namespace_name: str | None = None
    named: dict[str, NamedSpecifier] = field(default_factory=dict)

    @property
    def is_bare(self) -> bool:
        return self.default_name is None and self.namespace_name is None and not self.named


def index_import(model: SourceModel, statement: Node) -> SpecifierIndex:
    source = statement.child_by_field_name("source")
    index = SpecifierIndex(statement=statement, source=string_value(model, source) if source else "")

    clause = next((c for c in statement.named_children if c.type == "import_clause"), None)
    if clause is None:
        return index

    for child in clause.named_children:
        if child.type == "identifier":
            index.default_name = model.text(child)
        elif child.type == "namespace_import":
            ident = next((c for c in child.named_children if c.type == "identifier"), None)
            if ident is not None:
                index.namespace_name = model.text(ident)
        elif child.type == "named_imports":
            for spec in child.named_children:
                if spec.type != "import_specifier":
                    continue
                name = spec.child_by_field_name("name")
                alias = spec.child_by_field_name("alias")
                imported = string_value(model, name)
                local = model.text(alias) if alias is not None else imported
                if imported == "default":
                    # `{ default as X }` binds the default export.
                    index.default_name = local
                    continue
                index.named[imported] = NamedSpecifier(node=spec, imported=imported, local=local)
    return index


def _static_member(node: Node) -> tuple[Node, Node] | None:
    obj = node.child_by_field_name("object")
    prop = node.child_by_field_name("property")
    if obj is None or prop is None:
        return None
    if obj.type != "identifier" or prop.type != "property_identifier":
        return None
    return obj, prop


def iter_member_accesses(model: SourceModel, names: set[str]) -> Iterator[tuple[Node, str]]:
    """Yield (object identifier node, property name) for every `name.prop` in the file."""
    for node in model.find("member_expression"):
        pair = _static_member(node)
        if pair is None:
            continue
        obj, prop = pair
        if model.text(obj) in names:
            yield obj, model.text(prop)


def collect_accesses(model: SourceModel, binding_name: str | None) -> list[str]:
    """Property names accessed as `binding_name.prop`, deduplicated in first-seen order."""
    if not binding_name:
        return []
    out: dict[str, None] = {}
    for _, prop in iter_member_accesses(model, {binding_name}):
        out.setdefault(prop, None)
    return list(out)


def collect_direct_names(index: SpecifierIndex) -> list[str]:
    return list(index.named)


def has_bare_reference(model: SourceModel, binding_name: str | None, statement: Node) -> bool:
    """
    True if the binding is used as a value somewhere other than as the object
    of a static member access (e.g. passed to a function).
    """
    if not binding_name:
        return False
    for node in model.walk():
        if node.type not in ("identifier", "shorthand_property_identifier"):
            continue
        if statement.start_byte <= node.start_byte < statement.end_byte:
            continue
        if model.text(node) != binding_name:
            continue
        parent = node.parent
        if parent is not None and parent.type == "member_expression":
            pair = _static_member(parent)
            if pair is not None and pair[0] == node:
                continue
        return True
    return False
