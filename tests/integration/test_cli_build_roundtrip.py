from __future__ import annotations

import io
import json
from pathlib import Path

from asset_rev.host import main
from asset_rev.rev import rev_hash


def _write(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)


def _run(argv: list[str]) -> tuple[int, dict[str, object]]:
    out_stream = io.StringIO()
    code = main(argv, out_stream=out_stream)
    lines = [line for line in out_stream.getvalue().splitlines() if line]
    assert len(lines) == 1
    return code, json.loads(lines[0])


def _project(tmp_path: Path) -> Path:
    assets = tmp_path / "assets"
    _write(assets / "css" / "app.css", b"body{}")
    _write(assets / "js" / "app.js", b"console.log(1);\n")
    _write(assets / "js" / "app.js.map", json.dumps({"version": 3, "file": "app.js"}).encode())
    return tmp_path


def test_build_writes_revisioned_files_and_manifest(tmp_path: Path) -> None:
    root = _project(tmp_path)
    h_css = rev_hash(b"body{}")
    h_js = rev_hash(b"console.log(1);\n")

    code, response = _run(["--project-root", str(root)])

    assert code == 0
    assert response["ok"] is True
    dist = root / "dist"
    assert (dist / "css" / f"app-{h_css}.css").read_bytes() == b"body{}"
    assert (dist / "js" / f"app-{h_js}.js").exists()
    assert (dist / "js" / f"app-{h_js}.js.map").exists()
    manifest_text = (dist / "rev-manifest.json").read_text(encoding="utf-8")
    assert json.loads(manifest_text) == {
        "css/app.css": f"css/app-{h_css}.css",
        "js/app.js": f"js/app-{h_js}.js",
        "js/app.js.map": f"js/app-{h_js}.js.map",
    }
    result = response["result"]
    assert result["manifest"] == json.loads(manifest_text)
    assert [item["original"] for item in result["files"]] == [
        "css/app.css",
        "js/app.js",
        "js/app.js.map",
    ]


def test_repeated_builds_are_byte_identical(tmp_path: Path) -> None:
    root = _project(tmp_path)
    manifest_path = root / "dist" / "rev-manifest.json"

    _run(["--project-root", str(root)])
    first = manifest_path.read_bytes()
    _run(["--project-root", str(root)])

    assert manifest_path.read_bytes() == first


def test_merge_keeps_entries_from_previous_run(tmp_path: Path) -> None:
    assets = tmp_path / "assets"
    _write(assets / "old.js", b"old")
    _run(["--project-root", str(tmp_path)])
    (assets / "old.js").unlink()
    _write(assets / "new.js", b"new")

    code, response = _run(["--project-root", str(tmp_path), "--merge", "true"])

    assert code == 0
    assert response["result"]["manifest"] == {
        "new.js": f"new-{rev_hash(b'new')}.js",
        "old.js": f"old-{rev_hash(b'old')}.js",
    }


def test_hash_in_query_keeps_names_and_versions_manifest(tmp_path: Path) -> None:
    _write(tmp_path / "assets" / "app.css", b"body{}")

    code, response = _run(["--project-root", str(tmp_path), "--hash-in-query", "true"])

    assert code == 0
    assert (tmp_path / "dist" / "app.css").exists()
    fingerprint = rev_hash(b"body{}")
    assert response["result"]["manifest"] == {"app.css": f"app.css?v={fingerprint}"}


def test_empty_source_tree_writes_no_manifest(tmp_path: Path) -> None:
    (tmp_path / "assets").mkdir()

    code, response = _run(["--project-root", str(tmp_path)])

    assert code == 0
    assert response["result"]["manifest"] is None
    assert not (tmp_path / "dist" / "rev-manifest.json").exists()


def test_build_appends_rename_and_run_events(tmp_path: Path) -> None:
    root = _project(tmp_path)

    _, response = _run(["--project-root", str(root)])

    lines = (root / ".asset_rev" / "audit.jsonl").read_text(encoding="utf-8").splitlines()
    events = [json.loads(line) for line in lines]
    assert [event["event"] for event in events] == ["rename", "rename", "rename", "run"]
    assert {event["run_id"] for event in events} == {response["run_id"]}
    assert events[-1]["metadata"] == {
        "manifest_written": True,
        "revisioned_count": 3,
        "source_count": 3,
    }


def test_recent_runs_reports_latest_run_summaries(tmp_path: Path) -> None:
    root = _project(tmp_path)
    _, first = _run(["--project-root", str(root)])
    _, second = _run(["--project-root", str(root)])

    code, report = _run(["--project-root", str(root), "--recent-runs", "1"])

    assert code == 0
    assert report["ok"] is True
    assert report["run_id"] is None
    runs = report["result"]["runs"]
    assert [run["run_id"] for run in runs] == [second["run_id"]]
    assert runs[0]["event"] == "run"
    assert runs[0]["metadata"]["revisioned_count"] == 3

    _, both = _run(["--project-root", str(root), "--recent-runs", "5"])
    assert [run["run_id"] for run in both["result"]["runs"]] == [
        first["run_id"],
        second["run_id"],
    ]


def test_recent_runs_does_not_build(tmp_path: Path) -> None:
    root = _project(tmp_path)

    code, report = _run(["--project-root", str(root), "--recent-runs", "3"])

    assert code == 0
    assert report["result"] == {"runs": []}
    assert not (root / "dist").exists()


def test_recent_runs_since_excludes_older_runs(tmp_path: Path) -> None:
    root = _project(tmp_path)
    _run(["--project-root", str(root)])

    _, report = _run(
        ["--project-root", str(root), "--recent-runs", "5", "--since", "9999-01-01T00:00:00.000Z"]
    )

    assert report["result"]["runs"] == []
