"""Filesystem host and command line entrypoint for revisioning a source tree."""

from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path
from typing import TextIO

from asset_rev.config import BuildConfig, CliOverrides, load_effective_config
from asset_rev.logging import AuditEvent, JsonlAuditLogger, rename_event, utc_timestamp
from asset_rev.rev import (
    FileRecord,
    JsonTransformer,
    ManifestBuilder,
    ManifestOptions,
    ManifestReadError,
    RevisionEngine,
    StreamingUnsupportedError,
    rel_path,
    run_stages,
)
from asset_rev.security import PathBlockedError, output_target
from asset_rev.sources import discover_sources

FatalRunError = StreamingUnsupportedError | ManifestReadError | PathBlockedError
FATAL_RUN_ERRORS = (StreamingUnsupportedError, ManifestReadError, PathBlockedError)


class DestinationWriter:
    """Stage writing each record under dest_root and re-basing it there."""

    def __init__(self, dest_root: Path) -> None:
        self._dest_root = dest_root.resolve()
        self._written: list[FileRecord] = []

    @property
    def written(self) -> tuple[FileRecord, ...]:
        return tuple(self._written)

    def process(self, record: FileRecord) -> list[FileRecord]:
        if record.is_null():
            return [record]
        target = output_target(self._dest_root, record.relative)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(record.read_bytes())
        record.base = str(self._dest_root)
        record.path = str(target)
        self._written.append(record)
        return [record]

    def flush(self) -> list[FileRecord]:
        return []


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for build configuration."""
    parser = argparse.ArgumentParser(prog="asset-rev")
    parser.add_argument("--project-root", required=False, default=".")
    parser.add_argument("--src", required=False, default=None)
    parser.add_argument("--dest", required=False, default=None)
    parser.add_argument("--data-dir", required=False, default=None)
    parser.add_argument("--manifest-path", required=False, default=None)
    parser.add_argument("--merge", choices=("true", "false"), required=False, default=None)
    parser.add_argument(
        "--hash-in-query", choices=("true", "false"), required=False, default=None
    )
    parser.add_argument("--recent-runs", type=int, required=False, default=None)
    parser.add_argument("--since", required=False, default=None)
    return parser


def next_run_id() -> str:
    """Return a run identifier that sorts by start time."""
    return f"run-{time.time_ns()}"


def run_build(config: BuildConfig, run_id: str | None = None) -> dict[str, object]:
    """Revision every source file into dest and write the manifest.

    Fatal errors are logged to the audit log and re-raised.
    """
    run_id = run_id or next_run_id()
    logger = JsonlAuditLogger(path=config.data_dir / "audit.jsonl")
    engine = RevisionEngine(hash_in_query=config.rev.hash_in_query)
    assets = DestinationWriter(config.dest_dir)
    builder = ManifestBuilder(
        ManifestOptions(
            path=config.manifest.path,
            merge=config.manifest.merge,
            hash_in_query=config.manifest.hash_in_query,
            cwd=str(config.dest_dir),
            base=str(config.dest_dir),
        )
    )
    manifest_writer = DestinationWriter(config.dest_dir)
    records = discover_sources(config.src_dir, config.sources)
    try:
        # the prior manifest is read from this path, so it is checked before any stage runs
        output_target(config.dest_dir, config.manifest.path)
        run_stages(records, engine, assets, builder, manifest_writer)
    except FATAL_RUN_ERRORS as exc:
        logger.append(
            AuditEvent(
                timestamp=utc_timestamp(),
                run_id=run_id,
                event="run",
                ok=False,
                error_code=exc.code,
                metadata={"source_count": len(records), "reason": exc.reason},
            )
        )
        raise

    files: list[dict[str, object]] = []
    for record in assets.written:
        if record.original_path is None or record.original_base is None:
            continue
        original = rel_path(record.original_base, record.original_path)
        files.append(
            {
                "original": original,
                "revisioned": record.relative,
                "fingerprint": record.fingerprint,
            }
        )
        logger.append(rename_event(run_id, original, record.relative, record.fingerprint))

    manifest: object = None
    manifest_path: str | None = None
    if manifest_writer.written:
        emitted = manifest_writer.written[0]
        manifest_path = emitted.path
        manifest = JsonTransformer().parse(emitted.read_bytes().decode("utf-8"))

    logger.append(
        AuditEvent(
            timestamp=utc_timestamp(),
            run_id=run_id,
            event="run",
            ok=True,
            error_code=None,
            metadata={
                "source_count": len(records),
                "revisioned_count": len(files),
                "manifest_written": manifest_path is not None,
            },
        )
    )
    return {
        "run_id": run_id,
        "files": files,
        "manifest_path": manifest_path,
        "manifest": manifest,
        "effective_config": config.to_public_dict(),
    }


def recent_runs(
    config: BuildConfig, limit: int, since: str | None = None
) -> list[dict[str, object]]:
    """Return the newest ``limit`` run summaries from the audit log, oldest first."""
    logger = JsonlAuditLogger(path=config.data_dir / "audit.jsonl")
    return logger.read(event="run", since=since, limit=limit)


def error_response(run_id: str, exc: FatalRunError) -> dict[str, object]:
    """Return the failure envelope for a fatal run error."""
    return {
        "run_id": run_id,
        "ok": False,
        "result": {"reason": exc.reason, "hint": exc.hint},
        "error": {"code": exc.code, "message": exc.reason},
    }


def _parse_flag(value: str | None) -> bool | None:
    if value is None:
        return None
    return value == "true"


def main(argv: list[str] | None = None, out_stream: TextIO | None = None) -> int:
    """Entrypoint for the asset-rev command."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    stream = out_stream or sys.stdout
    overrides = CliOverrides(
        src_dir=Path(args.src).resolve() if args.src is not None else None,
        dest_dir=Path(args.dest).resolve() if args.dest is not None else None,
        data_dir=Path(args.data_dir).resolve() if args.data_dir is not None else None,
        manifest_path=args.manifest_path,
        merge=_parse_flag(args.merge),
        hash_in_query=_parse_flag(args.hash_in_query),
    )
    config = load_effective_config(project_root=Path(args.project_root), overrides=overrides)
    if args.recent_runs is not None:
        runs = recent_runs(config, limit=args.recent_runs, since=args.since)
        report = {"run_id": None, "ok": True, "result": {"runs": runs}, "error": None}
        stream.write(f"{json.dumps(report, sort_keys=True)}\n")
        return 0
    run_id = next_run_id()
    try:
        result = run_build(config, run_id=run_id)
    except FATAL_RUN_ERRORS as exc:
        stream.write(f"{json.dumps(error_response(run_id, exc), sort_keys=True)}\n")
        return 1
    response = {"run_id": run_id, "ok": True, "result": result, "error": None}
    stream.write(f"{json.dumps(response, sort_keys=True)}\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
