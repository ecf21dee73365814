from __future__ import annotations

import io
import json

import pytest

from asset_rev.rev import (
    FileRecord,
    ManifestBuilder,
    ManifestOptions,
    RevisionEngine,
    StreamingUnsupportedError,
    rev_hash,
    run_stages,
)


class _Recorder:
    """Stage that forwards everything and remembers what it saw."""

    def __init__(self) -> None:
        self.seen: list[str] = []
        self.flushed = False

    def process(self, record: FileRecord) -> list[FileRecord]:
        self.seen.append(record.path)
        return [record]

    def flush(self) -> list[FileRecord]:
        self.flushed = True
        return []


def _missing_reader(path: str, base: str) -> FileRecord:
    raise FileNotFoundError(path)


def test_flushed_debug_maps_reach_downstream_before_its_flush() -> None:
    engine = RevisionEngine()
    recorder = _Recorder()
    source_map = FileRecord(
        path="/build/js/app.js.map",
        base="/build",
        contents=json.dumps({"file": "app.js"}).encode("utf-8"),
    )
    artifact = FileRecord(path="/build/js/app.js", base="/build", contents=b"a")

    output = run_stages([source_map, artifact], engine, recorder)

    h1 = rev_hash(b"a")
    assert recorder.seen == [f"/build/js/app-{h1}.js", f"/build/js/app-{h1}.js.map"]
    assert recorder.flushed is True
    assert output == [artifact, source_map]


def test_engine_and_manifest_chain_emit_single_manifest_record() -> None:
    engine = RevisionEngine()
    builder = ManifestBuilder(ManifestOptions(cwd="/build"), reader=_missing_reader)
    records = [
        FileRecord(path="/build/js/app.js.map", base="/build", contents=b'{"file": "app.js"}'),
        FileRecord(path="/build/css/app.css", base="/build", contents=b"body{}"),
        FileRecord(path="/build/js/app.js", base="/build", contents=b"a"),
        FileRecord(path="/build/img", base="/build", contents=None),
    ]

    output = run_stages(records, engine, builder)

    assert len(output) == 1
    h_css = rev_hash(b"body{}")
    h_js = rev_hash(b"a")
    assert json.loads(output[0].read_bytes()) == {
        "css/app.css": f"css/app-{h_css}.css",
        "js/app.js": f"js/app-{h_js}.js",
        "js/app.js.map": f"js/app-{h_js}.js.map",
    }


def test_hash_in_query_chain_keeps_paths_and_versions_manifest() -> None:
    engine = RevisionEngine(hash_in_query=True)
    builder = ManifestBuilder(
        ManifestOptions(hash_in_query=True, cwd="/build"), reader=_missing_reader
    )
    artifact = FileRecord(path="/build/css/app.css", base="/build", contents=b"body{}")

    output = run_stages([artifact], engine, builder)

    fingerprint = rev_hash(b"body{}")
    assert artifact.path == "/build/css/app.css"
    assert json.loads(output[0].read_bytes()) == {"css/app.css": f"css/app.css?v={fingerprint}"}


def test_stream_record_aborts_run_without_manifest() -> None:
    engine = RevisionEngine()
    recorder = _Recorder()
    builder = ManifestBuilder(ManifestOptions(cwd="/build"), reader=_missing_reader)
    records = [
        FileRecord(path="/build/a.js", base="/build", contents=b"a"),
        FileRecord(path="/build/b.js", base="/build", contents=io.BytesIO(b"b")),
    ]

    with pytest.raises(StreamingUnsupportedError):
        run_stages(records, engine, builder, recorder)

    assert recorder.seen == []
    assert recorder.flushed is False
