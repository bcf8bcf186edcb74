# src/importfix/utils.py
from __future__ import annotations

import hashlib
import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

# Converted sources are text; a NUL this early means an asset or a build artifact.
BINARY_SNIFF_BYTES = 8192


def utc_ts() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%SZ")


def sha256_text(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8")).hexdigest()


def job_fingerprint(payload: dict[str, Any]) -> str:
    """
    sha256 over the canonical JSON form of a job payload. The caller leaves
    out run-specific fields (job_id, timestamp_utc) so reruns agree.
    """
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return sha256_text(canonical)


def looks_binary(data: bytes) -> bool:
    return b"\x00" in data[:BINARY_SNIFF_BYTES]


def display_path(path: str) -> str:
    """Path relative to the working directory, with forward slashes, for results."""
    return Path(os.path.relpath(path)).as_posix()
