# src/importfix/job.py
from __future__ import annotations

import os
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from importfix.utils import job_fingerprint, utc_ts


def _abs_paths(paths: list[str]) -> list[str]:
    return [os.path.normpath(os.path.abspath(p)) for p in paths]


class ReconcileContext(BaseModel):
    """What reconcile_file needs to know about the rest of the codebase."""

    converted_files: list[str] = []
    search_roots: list[str] = []

    @field_validator("converted_files", "search_roots")
    @classmethod
    def _normalize(cls, v: list[str]) -> list[str]:
        return _abs_paths(v)

    def is_converted(self, path: str) -> bool:
        return os.path.normpath(os.path.abspath(path)) in self.converted_files


class Filters(BaseModel):
    deny_dirs: list[str] = ["node_modules", ".git", ".next", "dist", "build", ".venv", "coverage"]
    extensions: list[str] = [".js"]
    max_file_bytes: int = 5 * 1024 * 1024


class Metadata(BaseModel):
    triggered_by: Literal["manual", "ci", "convert"] = "manual"
    notes: str | None = None


class FixImportsJob(BaseModel):
    job_id: str | None = None
    # Files that were just mechanically converted; every import in them is a candidate.
    converted_files: list[str]
    # Other files under this path are scanned for imports of the converted files.
    search_path: str = "."
    absolute_import_paths: list[str] = []
    filters: Filters = Field(default_factory=Filters)
    metadata: Metadata = Field(default_factory=Metadata)

    # derived at runtime
    timestamp_utc: str | None = None

    def finalize(self) -> "FixImportsJob":
        """
        Contract:
        - No randomness.
        - If job_id is not provided, derive it from the job's canonical content.
        """
        self.timestamp_utc = utc_ts()
        if not self.job_id:
            fp = job_fingerprint(self.model_dump(mode="python", exclude={"job_id", "timestamp_utc"}))
            self.job_id = fp[:12]
        return self

    def to_context(self) -> ReconcileContext:
        return ReconcileContext(
            converted_files=self.converted_files,
            search_roots=self.absolute_import_paths,
        )
