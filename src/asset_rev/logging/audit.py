"""Structured JSONL audit log utilities."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path


@dataclass(slots=True, frozen=True)
class AuditEvent:
    """One run summary or rename record."""

    timestamp: str
    run_id: str
    event: str
    ok: bool
    error_code: str | None
    metadata: dict[str, object]


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp."""
    return datetime.now(tz=UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def rename_event(
    run_id: str, original: str, revisioned: str, fingerprint: str | None
) -> AuditEvent:
    """Build the event logged for one revisioned file."""
    return AuditEvent(
        timestamp=utc_timestamp(),
        run_id=run_id,
        event="rename",
        ok=True,
        error_code=None,
        metadata={
            "original": original,
            "revisioned": revisioned,
            "fingerprint": fingerprint,
        },
    )


class JsonlAuditLogger:
    """Append-only JSONL audit logger and bounded reader."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        """Return on-disk JSONL path."""
        return self._path

    def append(self, event: AuditEvent) -> None:
        """Append an event as one JSON object per line."""
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(asdict(event), sort_keys=True))
            handle.write("\n")

    def read(
        self,
        event: str | None = None,
        run_id: str | None = None,
        since: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, object]]:
        """Return the newest ``limit`` events matching every given filter, oldest first.

        ``since`` is an inclusive timestamp lower bound. Lines that are not
        JSON objects are skipped.
        """
        if limit < 1 or not self._path.exists():
            return []
        matched: list[dict[str, object]] = []
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                try:
                    entry = json.loads(line)
                except json.JSONDecodeError:
                    continue
                if not isinstance(entry, dict):
                    continue
                if event is not None and entry.get("event") != event:
                    continue
                if run_id is not None and entry.get("run_id") != run_id:
                    continue
                timestamp = entry.get("timestamp")
                if since is not None and (not isinstance(timestamp, str) or timestamp < since):
                    continue
                matched.append(entry)
        return matched[-limit:]
