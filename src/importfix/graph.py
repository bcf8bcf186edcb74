# src/importfix/graph.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, TypedDict

from importfix.discovery import find_eligible_files
from importfix.errors import ReconcileFileError
from importfix.exports import ExportShapeResolver
from importfix.job import FixImportsJob, ReconcileContext
from importfix.reconcile import reconcile_file
from importfix.utils import display_path, sha256_text

try:
    from langgraph.graph import END, StateGraph
except Exception as e:  # pragma: no cover
    raise RuntimeError("LangGraph is required. Install 'langgraph'.") from e

logger = logging.getLogger(__name__)

# -----------------------------
# Stages (canonical)
# -----------------------------
STAGE_INIT = "init"
STAGE_PARSE_JOB = "parse_job"
STAGE_DISCOVER_FILES = "discover_files"
STAGE_FIX_IMPORTS = "fix_imports"
STAGE_WRITE_FILES = "write_files"
STAGE_EMIT_RESULT = "emit_result"
STAGE_DONE = "done"
STAGE_DONE_DRY_RUN = "done_dry_run"


class ImportFixStageError(RuntimeError):
    def __init__(self, stage: str, inner: Exception):
        super().__init__(str(inner))
        self.stage = stage
        self.inner = inner


@dataclass(frozen=True)
class RuntimeConfig:
    dry_run: bool


class ImportFixState(TypedDict, total=False):
    payload: dict[str, Any]
    payload_src: str
    config: RuntimeConfig
    stage: str

    job: FixImportsJob
    context: ReconcileContext

    eligible_files: list[str]

    # path -> rewritten source, only for files whose text changed
    new_sources: dict[str, str]
    failed_files: list[dict[str, str]]  # [{path, stage, error}]
    written_files: list[str]

    result: dict[str, Any]


def node_load_job(state: ImportFixState) -> ImportFixState:
    stage = STAGE_PARSE_JOB
    try:
        job = FixImportsJob.model_validate(state["payload"]).finalize()
        state["stage"] = stage
        state["job"] = job
        state["context"] = job.to_context()
        return state
    except Exception as e:
        raise ImportFixStageError(stage, e) from e


def node_discover_files(state: ImportFixState) -> ImportFixState:
    stage = STAGE_DISCOVER_FILES
    try:
        eligible = find_eligible_files(state["job"])
        logger.info("Found %d file(s) that may need updated imports", len(eligible))
        state["stage"] = stage
        state["eligible_files"] = eligible
        return state
    except Exception as e:
        raise ImportFixStageError(stage, e) from e


def node_fix_imports(state: ImportFixState) -> ImportFixState:
    stage = STAGE_FIX_IMPORTS
    try:
        context = state["context"]
        # One resolver per run: each imported module is parsed at most once.
        shapes = ExportShapeResolver(context.search_roots)

        new_sources: dict[str, str] = {}
        failed: list[dict[str, str]] = []
        for path in state["eligible_files"]:
            try:
                source = Path(path).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Skipping %s: %s", path, e)
                failed.append({"path": display_path(path), "stage": "read", "error": str(e)})
                continue

            try:
                fixed = reconcile_file(source, path, context, shapes=shapes)
            except ReconcileFileError as e:
                logger.warning("Failed to fix imports in %s: %s", path, e)
                failed.append({"path": display_path(path), "stage": e.stage, "error": str(e.inner)})
                continue

            if fixed != source:
                new_sources[path] = fixed

        state["stage"] = stage
        state["new_sources"] = new_sources
        state["failed_files"] = failed
        return state
    except Exception as e:
        raise ImportFixStageError(stage, e) from e


def node_write_files(state: ImportFixState) -> ImportFixState:
    stage = STAGE_WRITE_FILES
    try:
        written: list[str] = []
        if not state["config"].dry_run:
            for path, text in state["new_sources"].items():
                Path(path).write_text(text, encoding="utf-8")
                written.append(path)
        state["stage"] = stage
        state["written_files"] = written
        return state
    except Exception as e:
        raise ImportFixStageError(stage, e) from e


def node_emit_result(state: ImportFixState) -> ImportFixState:
    stage = STAGE_EMIT_RESULT
    try:
        job = state["job"]
        cfg = state["config"]
        new_sources = state.get("new_sources", {})

        state["result"] = {
            "ok": True,
            "stage": STAGE_DONE_DRY_RUN if cfg.dry_run else STAGE_DONE,
            "job_id": job.job_id,
            "job_payload_source": state.get("payload_src", "unknown"),
            "files_considered": len(state.get("eligible_files", [])),
            "files_changed": [display_path(p) for p in new_sources],
            "files_failed": state.get("failed_files", []),
            "hashes": {display_path(p): sha256_text(t) for p, t in new_sources.items()},
        }
        state["stage"] = stage
        return state
    except Exception as e:
        raise ImportFixStageError(stage, e) from e


def build_import_fix_graph():
    g = StateGraph(ImportFixState)

    g.add_node("load_job", node_load_job)
    g.add_node("discover_files", node_discover_files)
    g.add_node("fix_imports", node_fix_imports)
    g.add_node("write_files", node_write_files)
    g.add_node("emit_result", node_emit_result)

    g.set_entry_point("load_job")
    g.add_edge("load_job", "discover_files")
    g.add_edge("discover_files", "fix_imports")
    g.add_edge("fix_imports", "write_files")
    g.add_edge("write_files", "emit_result")
    g.add_edge("emit_result", END)

    return g.compile()


def run_import_fix_graph(
        *,
        payload: dict[str, Any],
        payload_src: str,
        dry_run: bool,
) -> dict[str, Any]:
    app = build_import_fix_graph()
    state: ImportFixState = {
        "payload": payload,
        "payload_src": payload_src,
        "config": RuntimeConfig(dry_run=dry_run),
        "stage": STAGE_INIT,
    }
    final_state = app.invoke(state)
    return final_state["result"]
