# src/importfix/manifest.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from importfix.exports import ExportShape


@dataclass
class ImportManifest:
    """
    Where each imported or accessed name must come from.

    - default_direct: named specifiers the module does not export by name;
      destructured off the default binding.
    - default_member: `X.prop` accesses that stay on the default binding.
    - named_direct: named specifiers the module really exports by name.
    - named_member: `X.prop` accesses redirected to the namespace binding.
    """

    default_direct: list[str] = field(default_factory=list)
    default_member: list[str] = field(default_factory=list)
    named_direct: list[str] = field(default_factory=list)
    named_member: list[str] = field(default_factory=list)

    @property
    def needs_default_binding(self) -> bool:
        return bool(self.default_direct or self.default_member)


def _add(bucket: list[str], name: str) -> None:
    if name not in bucket:
        bucket.append(name)


def build_manifest(
        shape: ExportShape,
        default_accesses: Iterable[str],
        namespace_accesses: Iterable[str],
        direct_names: Iterable[str],
) -> ImportManifest:
    # Classification depends only on the export shape, so a name seen both as a
    # member access and as a specifier always lands on the same side.
    manifest = ImportManifest()
    named = shape.named_exports
    for accesses in (default_accesses, namespace_accesses):
        for name in accesses:
            _add(manifest.named_member if name in named else manifest.default_member, name)
    for name in direct_names:
        _add(manifest.named_direct if name in named else manifest.default_direct, name)
    return manifest
