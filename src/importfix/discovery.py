# src/importfix/discovery.py
from __future__ import annotations

import logging
import os
from pathlib import Path

from importfix.job import FixImportsJob
from importfix.utils import looks_binary

logger = logging.getLogger(__name__)


def _module_basename(path: str) -> str:
    return Path(path).stem


def iter_source_files(search_path: str, job: FixImportsJob) -> list[str]:
    deny_dirs = set(job.filters.deny_dirs)
    exts = {e.lower() if e.startswith(".") else f".{e.lower()}" for e in job.filters.extensions}

    out: list[str] = []
    for root, dirs, filenames in os.walk(search_path):
        dirs[:] = sorted([d for d in dirs if d not in deny_dirs])
        for fn in sorted(filenames):
            if Path(fn).suffix.lower() not in exts:
                continue
            out.append(os.path.normpath(os.path.abspath(os.path.join(root, fn))))
    return out


def find_eligible_files(job: FixImportsJob) -> list[str]:
    """
    Files whose imports may need fixing: every converted file, plus any other
    file under search_path whose text mentions a converted module's basename.

    The basename check is a cheap textual filter; the reconciler decides per
    import whether anything actually changes.
    """
    converted = [os.path.normpath(os.path.abspath(p)) for p in job.converted_files]
    basenames = sorted({_module_basename(p) for p in converted})

    eligible: list[str] = []
    seen: set[str] = set()
    for p in converted:
        if p not in seen:
            seen.add(p)
            eligible.append(p)

    for path in iter_source_files(job.search_path, job):
        if path in seen:
            continue
        try:
            size = os.stat(path).st_size
        except OSError:
            logger.debug("Skipping %s: stat failed", path)
            continue
        if size > job.filters.max_file_bytes:
            logger.debug("Skipping %s: %d bytes exceeds max_file_bytes", path, size)
            continue
        try:
            raw = Path(path).read_bytes()
        except OSError:
            logger.debug("Skipping %s: read failed", path)
            continue
        if looks_binary(raw):
            continue

        text = raw.decode("utf-8", errors="replace")
        if any(name in text for name in basenames):
            seen.add(path)
            eligible.append(path)

    return eligible
