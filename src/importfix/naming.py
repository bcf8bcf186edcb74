# src/importfix/naming.py
from __future__ import annotations

import re
from dataclasses import dataclass

from importfix.errors import NameGenerationError
from importfix.resolver import JS_MODULE_EXTS
from importfix.source_model import UsedNamesIndex

MAX_NAME_SUFFIX = 5000

_SEPARATOR_START_RE = re.compile(r"(^|[ \-_])(.)")
_SEPARATOR_RE = re.compile(r"[ \-_]")
_NON_IDENT_RE = re.compile(r"[^\w$]")


@dataclass(frozen=True)
class ResolvedNames:
    default_name: str | None = None
    namespace_name: str | None = None


def camel_case_name(name: str) -> str:
    """'dashed-name' -> 'DashedName'."""
    out = _SEPARATOR_START_RE.sub(lambda m: m.group(0).upper(), name)
    return _SEPARATOR_RE.sub("", out)


def infer_name_from_import_path(import_path: str) -> str:
    filename = import_path.rsplit("/", 1)[-1]
    for ext in JS_MODULE_EXTS:
        if filename.endswith(ext):
            filename = filename[: -len(ext)]
            break
    name = _NON_IDENT_RE.sub("", camel_case_name(filename))
    if not name:
        return "Module"
    if name[0].isdigit():
        name = "_" + name
    return name


def find_free_name(desired_name: str, used: UsedNamesIndex) -> str:
    """
    Pick a name not used anywhere in the file nor already handed out in this
    run, and reserve it.
    """
    candidates = [desired_name]
    candidates.extend(f"{desired_name}{i}" for i in range(1, MAX_NAME_SUFFIX))
    for name in candidates:
        if not used.is_taken(name):
            used.allocate(name)
            return name
    raise NameGenerationError(desired_name)


def resolve_binding_names(
        *,
        existing_default: str | None,
        existing_namespace: str | None,
        needs_default: bool,
        needs_namespace: bool,
        has_default_export: bool,
        import_path: str,
        used: UsedNamesIndex,
) -> ResolvedNames:
    """
    Decide the local names for the default and namespace bindings of one
    import. Existing names win over generated ones; generated names are
    unique within the file.
    """
    default_name: str | None = None
    namespace_name: str | None = None

    if (not needs_default or existing_default) and (not needs_namespace or existing_namespace):
        if needs_default:
            default_name = existing_default
        if needs_namespace:
            namespace_name = existing_namespace

    elif needs_default and has_default_export and existing_default:
        # The default binding is what readers know this import by; keep it.
        default_name = existing_default
        if needs_namespace:
            namespace_name = find_free_name(f"{default_name}Exports", used)

    elif needs_default:
        if existing_default:
            default_name = existing_default
        elif existing_namespace and not needs_namespace:
            default_name = existing_namespace
        else:
            default_name = find_free_name(infer_name_from_import_path(import_path), used)
        if needs_namespace:
            namespace_name = existing_namespace or find_free_name(f"{default_name}Exports", used)

    elif needs_namespace:
        namespace_name = (
                existing_namespace
                or existing_default
                or find_free_name(infer_name_from_import_path(import_path), used)
        )

    return ResolvedNames(default_name=default_name, namespace_name=namespace_name)
