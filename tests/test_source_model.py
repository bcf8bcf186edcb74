import pytest

from importfix.source_model import SourceModel


def test_render_without_edits_returns_original_text():
    source = "// c\nimport a from './a';\n\n\nconst x = a;   // spaced\n"
    assert SourceModel(source).render() == source


def test_replace_and_insert_after_statement():
    model = SourceModel("import a from './a';\nuse(a);\n")
    stmt = model.top_level_statements()[0]
    model.replace(stmt, "import * as a from './a';")
    model.insert_after(stmt, "\nconst { b } = a;")
    assert model.render() == "import * as a from './a';\nconst { b } = a;\nuse(a);\n"


def test_edits_handle_multibyte_text():
    model = SourceModel("const s = 'héllo';\nFoo.bar;\n")
    obj = model.find("member_expression")[0].child_by_field_name("object")
    model.replace(obj, "FooExports")
    assert model.render() == "const s = 'héllo';\nFooExports.bar;\n"


def test_overlapping_edits_are_rejected():
    model = SourceModel("Foo.bar;\n")
    member = model.find("member_expression")[0]
    model.replace(member, "x")
    model.replace(member.child_by_field_name("object"), "y")
    with pytest.raises(ValueError):
        model.render()


def test_used_names_tracks_identifiers_and_allocations():
    model = SourceModel("const a = { b: 1 };\nc.d;\nconst { e } = f;\n")
    used = model.used_names()
    for name in ("a", "b", "c", "d", "e", "f"):
        assert used.is_taken(name)
    assert not used.is_taken("g")
    used.allocate("g")
    assert used.is_taken("g")
    assert model.used_names() is used
