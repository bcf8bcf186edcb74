# src/importfix/reconcile.py
from __future__ import annotations

import logging
import os

from importfix.errors import NameGenerationError, ReconcileFileError, UnresolvedModuleError
from importfix.exports import ExportShapeResolver
from importfix.job import ReconcileContext
from importfix.manifest import build_manifest
from importfix.naming import resolve_binding_names
from importfix.rewriter import apply_rewrite, plan_rewrite
from importfix.source_model import SourceModel
from importfix.usage import (
    SpecifierIndex,
    collect_accesses,
    collect_direct_names,
    has_bare_reference,
    index_import,
)

logger = logging.getLogger(__name__)

# -----------------------------
# Stages (per file)
# -----------------------------
STAGE_SCANNING = "scanning"
STAGE_RESOLVING = "resolving"
STAGE_CLASSIFYING = "classifying"
STAGE_NAMING = "naming"
STAGE_REWRITING = "rewriting"
STAGE_RENDERING = "rendering"
STAGE_DONE = "done"


class FileReconciler:
    """
    Fixes the import statements of one file so they match what the imported
    modules really export.

    A file that was just converted has every import checked; any other file
    only has imports of converted files checked.
    """

    def __init__(
            self,
            source_text: str,
            file_path: str,
            context: ReconcileContext,
            shapes: ExportShapeResolver | None = None,
    ):
        self.file_path = os.path.normpath(os.path.abspath(file_path))
        self.context = context
        self.shapes = shapes or ExportShapeResolver(context.search_roots)
        self.model = SourceModel(source_text, path=self.file_path)
        self.stage = STAGE_SCANNING
        self.rewritten: list[str] = []

    def candidate_imports(self) -> list[SpecifierIndex]:
        file_was_converted = self.context.is_converted(self.file_path)
        out: list[SpecifierIndex] = []
        for stmt in self.model.top_level_statements():
            if stmt.type != "import_statement":
                continue
            index = index_import(self.model, stmt)
            if index.is_bare:
                continue
            if not file_was_converted:
                try:
                    target = self.shapes.resolve_path(self.file_path, index.source)
                except UnresolvedModuleError:
                    continue
                if not self.context.is_converted(target):
                    continue
            out.append(index)
        return out

    def fix_import(self, index: SpecifierIndex) -> bool:
        self.stage = STAGE_RESOLVING
        try:
            shape = self.shapes.resolve_spec(self.file_path, index.source)
        except UnresolvedModuleError as e:
            logger.debug("Leaving import unchanged: %s", e)
            return False
        if not shape.is_module:
            logger.debug("Leaving import %r in %s unchanged: target is not an ES module", index.source, self.file_path)
            return False

        self.stage = STAGE_CLASSIFYING
        model = self.model
        manifest = build_manifest(
            shape,
            collect_accesses(model, index.default_name),
            collect_accesses(model, index.namespace_name),
            collect_direct_names(index),
        )

        needs_default = manifest.needs_default_binding or (
                shape.has_default_export and index.default_name is not None
        )
        # A binding used as a plain value has to keep referring to something:
        # with no default export, that is the namespace object.
        needs_namespace = (
                bool(manifest.named_member)
                or (not shape.has_default_export and has_bare_reference(model, index.default_name, index.statement))
                or has_bare_reference(model, index.namespace_name, index.statement)
        )

        self.stage = STAGE_NAMING
        names = resolve_binding_names(
            existing_default=index.default_name,
            existing_namespace=index.namespace_name,
            needs_default=needs_default,
            needs_namespace=needs_namespace,
            has_default_export=shape.has_default_export,
            import_path=index.source,
            used=model.used_names(),
        )

        self.stage = STAGE_REWRITING
        plan = plan_rewrite(model, index, manifest, names)
        if not plan.changed:
            return False
        apply_rewrite(model, plan)
        return True

    def run(self) -> str:
        try:
            self.stage = STAGE_SCANNING
            for index in self.candidate_imports():
                try:
                    if self.fix_import(index):
                        self.rewritten.append(index.source)
                except NameGenerationError:
                    raise
                except Exception as e:  # noqa: BLE001 - one bad import must not sink the file
                    logger.warning("Leaving import %r in %s unchanged: %s", index.source, self.file_path, e)

            self.stage = STAGE_RENDERING
            out = self.model.render()
            self.stage = STAGE_DONE
            return out
        except Exception as e:
            raise ReconcileFileError(self.file_path, self.stage, e) from e


def reconcile_file(
        source_text: str,
        file_path: str,
        context: ReconcileContext,
        *,
        shapes: ExportShapeResolver | None = None,
) -> str:
    """
    Return source_text with its imports matched to the real export shape of
    each imported module. Returns the input unchanged when nothing needs fixing.

    Raises ReconcileFileError on a fatal per-file failure.
    """
    return FileReconciler(source_text, file_path, context, shapes=shapes).run()
