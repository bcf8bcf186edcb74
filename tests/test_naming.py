import pytest

from importfix.errors import NameGenerationError
from importfix.naming import (
    camel_case_name,
    find_free_name,
    infer_name_from_import_path,
    resolve_binding_names,
)
from importfix.source_model import UsedNamesIndex


def resolve(used=(), **kw):
    args = dict(
        existing_default=None,
        existing_namespace=None,
        needs_default=False,
        needs_namespace=False,
        has_default_export=False,
        import_path="./some-module",
    )
    args.update(kw)
    return resolve_binding_names(used=UsedNamesIndex(set(used)), **args)


@pytest.mark.parametrize(
    "path,expected",
    [
        ("./util/dashed-name", "DashedName"),
        ("./foo_bar.js", "FooBar"),
        ("lib/Widget", "Widget"),
        ("./two words", "TwoWords"),
        ("./1st", "_1st"),
    ],
)
def test_infer_name_from_import_path(path, expected):
    assert infer_name_from_import_path(path) == expected


def test_camel_case_name():
    assert camel_case_name("a-b_c d") == "ABCD"


def test_find_free_name_appends_suffix_and_reserves():
    used = UsedNamesIndex({"Foo", "Foo1"})
    assert find_free_name("Foo", used) == "Foo2"
    assert find_free_name("Foo", used) == "Foo3"


def test_find_free_name_gives_up_after_budget():
    used = UsedNamesIndex({"X"} | {f"X{i}" for i in range(1, 5000)})
    with pytest.raises(NameGenerationError):
        find_free_name("X", used)


def test_existing_names_are_reused_when_sufficient():
    names = resolve(existing_default="Foo", existing_namespace="FooNs", needs_default=True, needs_namespace=True)
    assert (names.default_name, names.namespace_name) == ("Foo", "FooNs")


def test_nothing_needed_yields_no_names():
    names = resolve(existing_default="Foo")
    assert (names.default_name, names.namespace_name) == (None, None)


def test_default_name_kept_and_namespace_derived_from_it():
    names = resolve(existing_default="Foo", needs_default=True, needs_namespace=True, has_default_export=True)
    assert (names.default_name, names.namespace_name) == ("Foo", "FooExports")


def test_namespace_name_reused_as_default_when_namespace_not_needed():
    names = resolve(existing_namespace="Lib", needs_default=True)
    assert (names.default_name, names.namespace_name) == ("Lib", None)


def test_default_name_derived_from_path_when_namespace_also_needed():
    names = resolve(existing_namespace="Lib", needs_default=True, needs_namespace=True)
    assert (names.default_name, names.namespace_name) == ("SomeModule", "Lib")


def test_namespace_only_prefers_existing_namespace_then_default():
    assert resolve(existing_namespace="N", existing_default="D", needs_namespace=True).namespace_name == "N"
    assert resolve(existing_default="D", needs_namespace=True).namespace_name == "D"
    assert resolve(needs_namespace=True, used={"SomeModule"}).namespace_name == "SomeModule1"
