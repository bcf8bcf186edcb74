from importfix.exports import ExportShape
from importfix.manifest import build_manifest
from importfix.source_model import SourceModel
from importfix.usage import collect_accesses, collect_direct_names, has_bare_reference, index_import


def first_import(model):
    return next(s for s in model.top_level_statements() if s.type == "import_statement")


def test_index_import_reads_all_specifier_kinds():
    model = SourceModel("import Foo, { a, b as c, default as D } from \"./foo\";\nimport * as NS from './ns';\n")
    stmts = [s for s in model.top_level_statements() if s.type == "import_statement"]
    index = index_import(model, stmts[0])
    assert index.source == "./foo"
    # `default as D` binds the default export; it wins over the earlier default specifier
    assert index.default_name == "D"
    assert [(s.imported, s.local) for s in index.named.values()] == [("a", "a"), ("b", "c")]
    assert collect_direct_names(index) == ["a", "b"]

    ns = index_import(model, stmts[1])
    assert ns.namespace_name == "NS"
    assert ns.default_name is None
    assert not ns.is_bare


def test_side_effect_import_is_bare():
    model = SourceModel("import './polyfill';\n")
    assert index_import(model, first_import(model)).is_bare


def test_collect_accesses_only_static_members_of_plain_identifiers():
    model = SourceModel(
        "import Foo from './Foo';\n"
        "Foo.a();\n"
        "Foo.b.c;\n"
        "Foo['d'];\n"
        "x.Foo.e;\n"
        "Foo.a;\n"
    )
    assert collect_accesses(model, "Foo") == ["a", "b"]
    assert collect_accesses(model, None) == []


def test_bare_reference_detection():
    model = SourceModel("import Foo from './Foo';\nFoo.a();\n")
    stmt = first_import(model)
    assert has_bare_reference(model, "Foo", stmt) is False

    model = SourceModel("import Foo from './Foo';\nrender(Foo);\n")
    assert has_bare_reference(model, "Foo", first_import(model)) is True

    model = SourceModel("import Foo from './Foo';\nconst o = { Foo };\n")
    assert has_bare_reference(model, "Foo", first_import(model)) is True


def test_manifest_classifies_by_named_exports():
    shape = ExportShape(path="/m.js", has_default_export=True, named_exports=frozenset({"a", "b"}))
    manifest = build_manifest(shape, ["a", "z"], ["a", "b"], ["b", "q"])
    assert manifest.named_member == ["a", "b"]
    assert manifest.default_member == ["z"]
    assert manifest.named_direct == ["b"]
    assert manifest.default_direct == ["q"]
    assert manifest.needs_default_binding is True


def test_manifest_without_default_usage_needs_no_default_binding():
    shape = ExportShape(path="/m.js", named_exports=frozenset({"a"}))
    manifest = build_manifest(shape, [], ["a"], ["a"])
    assert manifest.needs_default_binding is False
    assert manifest.default_member == [] and manifest.default_direct == []
