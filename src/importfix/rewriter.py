# src/importfix/rewriter.py
from __future__ import annotations

from dataclasses import dataclass, field

from importfix.manifest import ImportManifest
from importfix.naming import ResolvedNames
from importfix.source_model import Node, SourceModel
from importfix.usage import SpecifierIndex, iter_member_accesses


@dataclass
class RewritePlan:
    """
    Every change one import statement needs. Nothing touches the source model
    until apply_rewrite(), so a failed plan leaves the file as it was.

    Statement edits are byte spans inside the import statement; anything the
    spans do not cover (comments, line breaks, the source string) is kept.
    """

    statement: Node
    new_specifiers: list[str] = field(default_factory=list)
    statement_edits: list[tuple[int, int, str]] = field(default_factory=list)
    # Comments from a clause that had to be rebuilt; re-emitted above the import.
    carried_comments: list[str] = field(default_factory=list)
    renamed_accesses: list[tuple[Node, str]] = field(default_factory=list)
    inserted_statements: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.statement_edits or self.renamed_accesses or self.inserted_statements)


def make_destructure_statement(fields: list[tuple[str, str]], object_name: str) -> str:
    props = [access if access == bound else f"{access}: {bound}" for access, bound in fields]
    return f"const {{ {', '.join(props)} }} = {object_name};"


def _child_of_type(node: Node, node_type: str) -> Node | None:
    return next((c for c in node.children if c.type == node_type), None)


def _merge_spans(spans: list[tuple[int, int]]) -> list[tuple[int, int]]:
    merged: list[tuple[int, int]] = []
    for start, end in sorted(spans):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(end, merged[-1][1]))
        else:
            merged.append((start, end))
    return merged


def _removal_spans(model: SourceModel, named_imports: Node, keep: set[tuple[int, int]]) -> list[tuple[int, int]]:
    """
    Byte spans to cut from a `{ ... }` list so that only the kept specifiers
    remain. A dropped specifier takes its trailing comma with it; the last one
    in the list takes the comma after the previous kept specifier instead.
    Comments between specifiers are never inside a span.
    """
    children = named_imports.children
    spans: list[tuple[int, int]] = []
    for i, child in enumerate(children):
        if child.type != "import_specifier" or (child.start_byte, child.end_byte) in keep:
            continue
        comma = None
        for nxt in children[i + 1:]:
            if nxt.type == ",":
                comma = nxt
            if nxt.type != "comment":
                break
        if comma is not None:
            end = comma.end_byte
            while model.data[end:end + 1] in (b" ", b"\t"):
                end += 1
            spans.append((child.start_byte, child.end_byte))
            spans.append((comma.start_byte, end))
            continue

        start = child.start_byte
        last_kept = None
        for j in range(i - 1, -1, -1):
            prev = children[j]
            if prev.type == "import_specifier" and (prev.start_byte, prev.end_byte) in keep:
                last_kept = j
                break
        if last_kept is not None:
            comma = next((c for c in children[last_kept + 1:i] if c.type == ","), None)
            if comma is not None:
                start = comma.start_byte
        spans.append((start, child.end_byte))
    return _merge_spans(spans)


def _edited_named_imports(model: SourceModel, named_imports: Node, keep: set[tuple[int, int]]) -> str:
    pieces: list[str] = []
    pos = named_imports.start_byte
    for start, end in _removal_spans(model, named_imports, keep):
        pieces.append(model.span_text(pos, start))
        pos = end
    pieces.append(model.span_text(pos, named_imports.end_byte))
    return "".join(pieces)


def _comments_outside(model: SourceModel, node: Node, kept: Node | None) -> list[str]:
    out = []
    for n in model.walk(node):
        if n.type != "comment":
            continue
        if kept is not None and kept.start_byte <= n.start_byte < kept.end_byte:
            continue
        out.append(model.text(n))
    return out


def _plan_clause(
        model: SourceModel,
        plan: RewritePlan,
        index: SpecifierIndex,
        head: list[str],
        kept_named: list[str],
) -> None:
    statement = index.statement
    clause = _child_of_type(statement, "import_clause")
    if clause is None:
        return
    named_imports = _child_of_type(clause, "named_imports")

    named_text = None
    if kept_named and named_imports is not None:
        keep = {(index.named[n].node.start_byte, index.named[n].node.end_byte) for n in kept_named}
        named_text = _edited_named_imports(model, named_imports, keep)

    plan.carried_comments = _comments_outside(model, clause, named_imports if named_text is not None else None)

    parts = head + ([named_text] if named_text is not None else [])
    if parts:
        plan.statement_edits.append((clause.start_byte, clause.end_byte, ", ".join(parts)))
        return

    # No bindings left: `import X from './m';` becomes `import './m';`.
    source = statement.child_by_field_name("source")
    end = source.start_byte if source is not None else clause.end_byte
    plan.statement_edits.append((clause.start_byte, end, ""))


def _insertion_anchor(statement: Node) -> Node:
    # A comment trailing the import on the same line stays attached to it.
    sib = statement.next_sibling
    if sib is not None and sib.type == "comment" and sib.start_point[0] == statement.end_point[0]:
        return sib
    return statement


def plan_rewrite(
        model: SourceModel,
        index: SpecifierIndex,
        manifest: ImportManifest,
        names: ResolvedNames,
) -> RewritePlan:
    plan = RewritePlan(statement=index.statement)
    default_name = names.default_name
    namespace_name = names.namespace_name

    head: list[str] = []
    if default_name:
        head.append(default_name)
    if namespace_name:
        head.append(f"* as {namespace_name}")
    # Named specifiers cannot sit next to a namespace specifier; with a
    # namespace they are destructured from it below instead.
    kept_named: list[str] = []
    if not namespace_name:
        kept_named = list(manifest.named_direct)
    plan.new_specifiers = list(head)
    if kept_named:
        plan.new_specifiers.append("{ " + ", ".join(model.text(index.named[n].node) for n in kept_named) + " }")

    unchanged = (
            default_name == index.default_name
            and namespace_name == index.namespace_name
            and kept_named == list(index.named)
    )
    if not unchanged:
        _plan_clause(model, plan, index, head, kept_named)

    default_props = set(manifest.default_member)
    namespace_props = set(manifest.named_member)
    old_bindings = {n for n in (index.default_name, index.namespace_name) if n}
    for obj, prop in iter_member_accesses(model, old_bindings):
        target = None
        if prop in default_props:
            target = default_name
        elif prop in namespace_props:
            target = namespace_name
        if target and target != model.text(obj):
            plan.renamed_accesses.append((obj, target))

    if manifest.default_direct and default_name:
        fields = [(index.named[n].imported, index.named[n].local) for n in manifest.default_direct]
        plan.inserted_statements.append(make_destructure_statement(fields, default_name))
    if manifest.named_direct and namespace_name:
        fields = [(index.named[n].imported, index.named[n].local) for n in manifest.named_direct]
        plan.inserted_statements.append(make_destructure_statement(fields, namespace_name))

    return plan


def apply_rewrite(model: SourceModel, plan: RewritePlan) -> None:
    if plan.carried_comments:
        model.insert_before(plan.statement, "".join(c + "\n" for c in plan.carried_comments))
    for start, end, text in plan.statement_edits:
        model.replace_span(start, end, text)
    for obj, new_name in plan.renamed_accesses:
        model.replace(obj, new_name)
    if plan.inserted_statements:
        model.insert_after(_insertion_anchor(plan.statement), "".join("\n" + s for s in plan.inserted_statements))
