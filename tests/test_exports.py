from pathlib import Path

import pytest

from importfix import exports
from importfix.errors import MalformedExportError, UnresolvedModuleError
from importfix.exports import ExportShapeResolver, scan_exports
from importfix.source_model import SourceModel


def write(root: Path, rel: str, text: str) -> str:
    p = root / rel
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding="utf-8")
    return str(p)


def test_scan_reads_declarations_and_clauses():
    model = SourceModel(
        "export { a, b as c } from './x';\n"
        "export * as ns from './y';\n"
        "export class K {}\n"
        "export let { p, q: r } = obj;\n"
        "export function* gen() {}\n"
        "export var v = 1, w = 2;\n"
    )
    scan = scan_exports(model)
    assert scan.named_exports == {"a", "c", "ns", "K", "p", "r", "gen", "v", "w"}
    assert scan.has_default_export is False
    assert scan.reexport_all == []
    assert scan.is_module is True


def test_default_export_forms():
    for text in (
        "export default function() {}\n",
        "export default class Foo {}\n",
        "export default 42;\n",
    ):
        assert scan_exports(SourceModel(text)).has_default_export is True


def test_export_as_default_counts_as_default():
    scan = scan_exports(SourceModel("const d = 1;\nexport { d as default };\n"))
    assert scan.has_default_export is True
    assert scan.named_exports == set()


def test_script_without_module_syntax_is_not_a_module():
    scan = scan_exports(SourceModel("module.exports = { x: 1 };\n"))
    assert scan.is_module is False


def test_reexport_all_is_flattened(tmp_path):
    write(tmp_path, "c.js", "export const deep = 1;\nexport default 3;\n")
    write(tmp_path, "b.js", "export * from './c';\nexport function foo() {}\n")
    a = write(tmp_path, "a.js", "export * from './b';\n")
    shape = ExportShapeResolver().resolve(a)
    assert shape.named_exports == frozenset({"foo", "deep"})
    # defaults do not travel through `export *`
    assert shape.has_default_export is False


def test_circular_reexports_terminate(tmp_path):
    a = write(tmp_path, "A.js", "export * from './B';\nexport const a = 1;\n")
    b = write(tmp_path, "B.js", "export * from './A';\nexport const b = 2;\n")
    resolver = ExportShapeResolver()
    assert resolver.resolve(a).named_exports == frozenset({"a", "b"})
    assert resolver.resolve(b).named_exports == frozenset({"a", "b"})


def test_unresolvable_reexport_is_skipped(tmp_path):
    a = write(tmp_path, "a.js", "export * from './missing';\nexport const x = 1;\n")
    assert ExportShapeResolver().resolve(a).named_exports == frozenset({"x"})


def test_missing_module_raises_unresolved(tmp_path):
    main = write(tmp_path, "main.js", "")
    with pytest.raises(UnresolvedModuleError):
        ExportShapeResolver().resolve_spec(main, "./nope")


def test_search_roots_resolve_absolute_specifiers(tmp_path):
    write(tmp_path, "lib/util.js", "export const u = 1;\n")
    main = write(tmp_path, "app/main.js", "")
    shape = ExportShapeResolver([str(tmp_path / "lib")]).resolve_spec(main, "util")
    assert shape.named_exports == frozenset({"u"})


def test_each_module_is_parsed_once_per_resolver(tmp_path, monkeypatch):
    a = write(tmp_path, "a.js", "export * from './b';\n")
    b = write(tmp_path, "b.js", "export const x = 1;\n")
    calls = []
    real = exports.scan_exports

    def counting(model):
        calls.append(model.path)
        return real(model)

    monkeypatch.setattr(exports, "scan_exports", counting)
    resolver = ExportShapeResolver()
    resolver.resolve(a)
    resolver.resolve(b)
    resolver.resolve(a)
    assert sorted(calls) == sorted([a, b])


def test_malformed_exports_assume_empty_shape(tmp_path, monkeypatch):
    path = write(tmp_path, "weird.js", "export const x = 1;\n")

    def broken(model):
        raise MalformedExportError(model.path, "unsupported syntax")

    monkeypatch.setattr(exports, "scan_exports", broken)
    shape = ExportShapeResolver().resolve(path)
    assert shape.has_default_export is False
    assert shape.named_exports == frozenset()
    assert shape.is_module is True
