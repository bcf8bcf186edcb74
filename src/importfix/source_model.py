# src/importfix/source_model.py
"""
Parsed JavaScript source with span-based edits.

The tree-sitter tree is never mutated. Rewrites are recorded as byte-range
edits against the original buffer and applied in one pass by render(), so
comments and formatting outside the edited spans survive untouched.
"""
from __future__ import annotations

import logging
from typing import Iterator

try:
    import tree_sitter_javascript
    from tree_sitter import Language, Node, Parser
except ImportError as e:
    raise ImportError(
        "tree-sitter is required. Install with: pip install tree-sitter tree-sitter-javascript"
    ) from e

logger = logging.getLogger(__name__)

# Node kinds whose text occupies a name in the file. Property names count too:
# a synthesized binding must not read like an existing member.
NAME_NODE_TYPES = frozenset(
    {
        "identifier",
        "property_identifier",
        "shorthand_property_identifier",
        "shorthand_property_identifier_pattern",
    }
)

_parser: Parser | None = None


def get_parser() -> Parser:
    """Get or create the JavaScript parser."""
    global _parser
    if _parser is None:
        _parser = Parser(Language(tree_sitter_javascript.language()))
    return _parser


class UsedNamesIndex:
    """
    Every name present in a file, plus the names synthesized so far in the
    current run. Built once per file.
    """

    def __init__(self, names: set[str]):
        self._names = set(names)
        self._allocated: set[str] = set()

    def is_taken(self, name: str) -> bool:
        return name in self._names or name in self._allocated

    def allocate(self, name: str) -> None:
        self._allocated.add(name)


class SourceModel:
    def __init__(self, source: str, path: str = "<memory>"):
        self.path = path
        self.source = source
        self._data = source.encode("utf-8")
        self.tree = get_parser().parse(self._data)
        self._replacements: dict[tuple[int, int], str] = {}
        self._insertions: dict[int, list[str]] = {}
        self._used_names: UsedNamesIndex | None = None

        if self.tree.root_node.has_error:
            logger.debug("Parse errors in %s; continuing with a partial tree", path)

    @classmethod
    def from_file(cls, path: str) -> "SourceModel":
        with open(path, encoding="utf-8") as f:
            return cls(f.read(), path=path)

    @property
    def root(self) -> Node:
        return self.tree.root_node

    def walk(self, node: Node | None = None) -> Iterator[Node]:
        # Iterative pre-order; deeply nested files must not hit the recursion limit.
        stack = [node if node is not None else self.root]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(current.children))

    def find(self, node_type: str, node: Node | None = None) -> list[Node]:
        return [n for n in self.walk(node) if n.type == node_type]

    def top_level_statements(self) -> list[Node]:
        return [n for n in self.root.named_children if n.type != "comment"]

    @property
    def data(self) -> bytes:
        return self._data

    def text(self, node: Node) -> str:
        return self.span_text(node.start_byte, node.end_byte)

    def span_text(self, start: int, end: int) -> str:
        return self._data[start:end].decode("utf-8")

    def used_names(self) -> UsedNamesIndex:
        if self._used_names is None:
            names = {self.text(n) for n in self.walk() if n.type in NAME_NODE_TYPES}
            self._used_names = UsedNamesIndex(names)
        return self._used_names

    # -----------------------------
    # Edits
    # -----------------------------

    def replace(self, node: Node, text: str) -> None:
        self.replace_span(node.start_byte, node.end_byte, text)

    def replace_span(self, start: int, end: int, text: str) -> None:
        self._replacements[(start, end)] = text

    def insert_before(self, node: Node, text: str) -> None:
        self._insertions.setdefault(node.start_byte, []).append(text)

    def insert_after(self, node: Node, text: str) -> None:
        self._insertions.setdefault(node.end_byte, []).append(text)

    @property
    def has_edits(self) -> bool:
        return bool(self._replacements or self._insertions)

    def render(self) -> str:
        if not self.has_edits:
            return self.source

        spans = sorted(self._replacements)
        for (_, prev_end), (next_start, _) in zip(spans, spans[1:]):
            if next_start < prev_end:
                raise ValueError(f"Overlapping edits in {self.path}")

        edits: list[tuple[int, int, str]] = [(s, e, t) for (s, e), t in self._replacements.items()]
        edits.extend((pos, pos, "".join(texts)) for pos, texts in self._insertions.items())

        # Apply back-to-front so earlier offsets stay valid. An insertion at the
        # end of a replaced span sorts after it and is applied first.
        out = self._data
        for start, end, text in sorted(edits, key=lambda e: (e[0], e[1]), reverse=True):
            out = out[:start] + text.encode("utf-8") + out[end:]
        return out.decode("utf-8")
