from pathlib import Path

from importfix.discovery import find_eligible_files
from importfix.job import FixImportsJob, ReconcileContext
from importfix.utils import display_path


def write(root: Path, rel: str, text: str) -> str:
    p = root / rel
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding="utf-8")
    return str(p)


def test_eligible_files_are_converted_files_plus_textual_importers(tmp_path):
    widget = write(tmp_path, "src/Widget.js", "export default 1;\n")
    user = write(tmp_path, "src/app/user.js", "import Widget from '../Widget';\n")
    write(tmp_path, "src/other.js", "import x from './x';\n")
    write(tmp_path, "src/notes.txt", "Widget\n")
    write(tmp_path, "node_modules/pkg/index.js", "require('Widget');\n")

    job = FixImportsJob(converted_files=[widget], search_path=str(tmp_path))
    assert find_eligible_files(job) == [widget, user]


def test_converted_files_are_not_listed_twice(tmp_path):
    a = write(tmp_path, "a/Alpha.js", "import B from './Beta';\n")
    b = write(tmp_path, "a/Beta.js", "import A from './Alpha';\n")
    job = FixImportsJob(converted_files=[a, b], search_path=str(tmp_path))
    assert find_eligible_files(job) == [a, b]


def test_job_finalize_is_deterministic_and_builds_context(tmp_path):
    payload = {"converted_files": ["x.js"], "absolute_import_paths": [str(tmp_path)]}
    j1 = FixImportsJob.model_validate(payload).finalize()
    j2 = FixImportsJob.model_validate(payload).finalize()
    assert j1.job_id == j2.job_id
    assert len(j1.job_id) == 12

    ctx = j1.to_context()
    assert isinstance(ctx, ReconcileContext)
    assert ctx.search_roots == [str(tmp_path)]
    assert ctx.is_converted("x.js")


def test_job_id_ignores_run_specific_fields():
    base = {"converted_files": ["x.js"]}
    j1 = FixImportsJob.model_validate(base).finalize()
    j2 = FixImportsJob.model_validate({**base, "timestamp_utc": "2020-01-01T00-00-00Z"}).finalize()
    j3 = FixImportsJob.model_validate({"converted_files": ["y.js"]}).finalize()
    assert j1.job_id == j2.job_id
    assert j1.job_id != j3.job_id


def test_binary_files_are_not_scanned_for_importers(tmp_path):
    widget = write(tmp_path, "Widget.js", "export default 1;\n")
    (tmp_path / "bundle.js").write_bytes(b"\x00\x01Widget\x00")
    job = FixImportsJob(converted_files=[widget], search_path=str(tmp_path))
    assert find_eligible_files(job) == [widget]


def test_display_path_is_relative_with_forward_slashes(tmp_path, monkeypatch):
    root = tmp_path.resolve()
    monkeypatch.chdir(root)
    assert display_path(str(root / "src" / "main.js")) == "src/main.js"
