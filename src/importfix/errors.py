# src/importfix/errors.py
from __future__ import annotations


class ImportFixError(RuntimeError):
    pass


class UnresolvedModuleError(ImportFixError):
    def __init__(self, from_file: str, specifier: str):
        super().__init__(f"Cannot resolve import {specifier!r} from {from_file}")
        self.from_file = from_file
        self.specifier = specifier


class NameGenerationError(ImportFixError):
    def __init__(self, desired_name: str):
        super().__init__(f"Could not find a free name based on {desired_name!r}")
        self.desired_name = desired_name


class MalformedExportError(ImportFixError):
    def __init__(self, module_path: str, detail: str):
        super().__init__(f"Could not interpret exports of {module_path}: {detail}")
        self.module_path = module_path


class ReconcileFileError(ImportFixError):
    """
    Fatal failure while reconciling one file.

    The file keeps its original source; the caller decides whether to continue
    with the rest of the file set.
    """

    def __init__(self, file_path: str, stage: str, inner: Exception):
        super().__init__(f"{file_path} [{stage}]: {inner}")
        self.file_path = file_path
        self.stage = stage
        self.inner = inner
