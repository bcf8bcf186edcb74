# src/importfix/cli.py
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

from . import __version__
from . import main as main_module

STAGE_PARSE_JOB = "parse_job"
JOB_ENV_VAR = "IMPORTFIX_JOB_JSON"


def _parse_dotenv_line(line: str) -> tuple[str, str] | None:
    """
    Minimal .env parser (deterministic, no external deps).
    Supports KEY=VALUE, `export KEY=VALUE`, full-line and trailing comments,
    and '...' / "..." quoted values. No variable expansion.
    """
    s = line.strip()
    if not s or s.startswith("#"):
        return None
    if s.startswith("export "):
        s = s[len("export ") :].lstrip()
    if "=" not in s:
        return None

    key, rest = s.split("=", 1)
    key = key.strip()
    if not key:
        return None

    val = rest.strip()
    if val[:1] in ("'", '"'):
        quote = val[0]
        out: list[str] = []
        escaped = False
        for ch in val[1:]:
            if escaped:
                out.append(ch)
                escaped = False
            elif quote == '"' and ch == "\\":
                escaped = True
            elif ch == quote:
                break
            else:
                out.append(ch)
        return key, "".join(out)

    return key, val.split("#", 1)[0].strip()


def _load_dotenv_file(path: str, *, override: bool = False) -> bool:
    """
    Loads key/value pairs from a .env file into os.environ.
    Returns True if the file existed and was read.
    """
    p = Path(path)
    if not p.is_file():
        return False

    for raw_line in p.read_text(encoding="utf-8").splitlines():
        parsed = _parse_dotenv_line(raw_line)
        if not parsed:
            continue
        k, v = parsed
        if not override and k in os.environ:
            continue
        os.environ[k] = v
    return True


def _payload_from_args(args: argparse.Namespace) -> dict[str, Any]:
    return {
        "converted_files": list(args.paths),
        "search_path": args.search_path,
        "absolute_import_paths": list(args.absolute_import_paths or []),
    }


def _read_job_payload_required(payload_src_hint: str | None) -> tuple[dict[str, Any], str]:
    """
    Job input when no paths are given on the command line: IMPORTFIX_JOB_JSON
    (env JSON string), optionally populated from a .env file via --dotenv.

    Returns: (payload_dict, payload_src_string)
    """
    raw = os.environ.get(JOB_ENV_VAR)
    if not raw or not raw.strip():
        raise RuntimeError(f"Missing required job payload: pass file paths or set {JOB_ENV_VAR}.")

    payload = json.loads(raw)

    if not isinstance(payload, dict):
        raise TypeError(f"{JOB_ENV_VAR} must decode to a JSON object (dict).")

    src = payload_src_hint or f"env:{JOB_ENV_VAR}"
    return payload, src


def _print_success(obj: dict[str, Any]) -> None:
    print(json.dumps(obj, separators=(",", ":")), file=sys.stdout)


def _print_failure(stage: str, err: Exception) -> None:
    out = {
        "ok": False,
        "stage": stage,
        "error_code": f"IMPORTFIX_FAILED_{stage.upper()}",
        "error_message": str(err),
    }
    print(json.dumps(out, separators=(",", ":")), file=sys.stdout)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="importfix",
        description="Fix ES module imports after a file-local conversion to match real export shapes.",
    )
    parser.add_argument(
        "paths",
        nargs="*",
        metavar="FILE",
        help=f"Files that were just converted. Without any, the job is read from {JOB_ENV_VAR}.",
    )
    parser.add_argument(
        "--search-path",
        default=".",
        metavar="DIR",
        help="Directory scanned for other files that import the converted files (default: .).",
    )
    parser.add_argument(
        "--absolute-import-path",
        dest="absolute_import_paths",
        action="append",
        metavar="DIR",
        help="Root for non-relative imports; may be repeated.",
    )
    parser.add_argument(
        "--dotenv",
        nargs="?",
        const=".env",
        default=None,
        metavar="PATH",
        help="Optional: load env vars from a local .env file (default: ./.env).",
    )
    parser.add_argument(
        "--dotenv-override",
        action="store_true",
        help="Optional: allow .env values to override already-set environment variables.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Compute fixes and report them without writing any file.",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("IMPORTFIX_LOG_LEVEL", "WARNING"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level for diagnostics on stderr (default: WARNING).",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"importfix {__version__}",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    # stdout carries the JSON result only.
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        stream=sys.stderr,
        format="%(levelname)s %(name)s: %(message)s",
    )

    payload_src_hint: str | None = None
    had_payload_before = bool(os.environ.get(JOB_ENV_VAR, "").strip())

    if args.dotenv:
        loaded = _load_dotenv_file(str(args.dotenv), override=bool(args.dotenv_override))
        if loaded and not had_payload_before and bool(os.environ.get(JOB_ENV_VAR, "").strip()):
            payload_src_hint = f"dotenv:{args.dotenv}#{JOB_ENV_VAR}"

    try:
        if args.paths:
            payload, payload_src = _payload_from_args(args), "cli"
        else:
            payload, payload_src = _read_job_payload_required(payload_src_hint)

        result = main_module.run(
            job_payload=payload,
            dry_run=bool(args.dry_run),
            payload_src=payload_src,
        )
        _print_success(result)
        return 0

    except Exception as e:  # noqa: BLE001 - top-level CLI error handler
        try:
            from importfix.graph import ImportFixStageError
        except Exception:  # graph import itself may be what failed
            ImportFixStageError = None  # type: ignore

        if ImportFixStageError is not None and isinstance(e, ImportFixStageError):
            _print_failure(e.stage, e)
            return 1

        # Payload / argument issues are parse_job
        if isinstance(e, (json.JSONDecodeError, RuntimeError, TypeError)):
            _print_failure(STAGE_PARSE_JOB, e)
            return 1

        _print_failure("unknown", e)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
