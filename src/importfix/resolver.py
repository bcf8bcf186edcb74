# src/importfix/resolver.py
from __future__ import annotations

import os
from pathlib import Path
from typing import Sequence

# Suffixes that already name a JS file; anything else gets ".js" appended.
JS_MODULE_EXTS = (".js", ".jsx", ".mjs")


def is_relative_spec(spec: str) -> bool:
    return spec.startswith(("./", "../")) or spec in (".", "..")


def _with_js_ext(spec: str) -> str:
    if spec.endswith(JS_MODULE_EXTS):
        return spec
    return spec + ".js"


def _candidate_paths(base: str, spec: str) -> list[str]:
    joined = os.path.normpath(os.path.join(base, spec))
    out = [_with_js_ext(joined)]
    # "./lib" may also name a directory with an index module.
    out.append(os.path.join(joined, "index.js"))
    return out


def _first_existing(candidates: list[str]) -> str | None:
    for cand in candidates:
        if Path(cand).is_file():
            return os.path.abspath(cand)
    return None


def resolve_import_path(from_file: str, spec: str, search_roots: Sequence[str] = ()) -> str | None:
    """
    Turn an import string into an absolute path to a JS file, or None.

    - "./x" and "../x" resolve against the importing file's directory only.
    - "/x" is taken as a filesystem path.
    - anything else is looked up under each search root, in order.
    """
    s = (spec or "").strip()
    if not s:
        return None

    if is_relative_spec(s):
        from_dir = os.path.dirname(os.path.abspath(from_file))
        return _first_existing(_candidate_paths(from_dir, s))

    if s.startswith("/"):
        return _first_existing(_candidate_paths("/", s))

    for root in search_roots:
        found = _first_existing(_candidate_paths(os.path.abspath(root), s))
        if found:
            return found
    return None
