# src/importfix/main.py
from __future__ import annotations

from typing import Any, Dict


def run(
        job_payload: Dict[str, Any],
        dry_run: bool = False,
        *,
        payload_src: str = "unknown",
) -> Dict[str, Any]:
    """
    Core entrypoint used by importfix.cli.

    importfix.graph owns the batch workflow
    (load job → discover files → fix imports → write files → emit result).
    """
    from importfix.graph import run_import_fix_graph

    # Let ImportFixStageError bubble up so the CLI can render stage-aware JSON.
    return run_import_fix_graph(
        payload=job_payload,
        payload_src=payload_src,
        dry_run=dry_run,
    )
