"""Streaming revision engine with deferred debug-map linking."""

from __future__ import annotations

import json
import os

from asset_rev.rev.filename import apply, mode_for, revert
from asset_rev.rev.hashing import rev_hash
from asset_rev.rev.models import DEBUG_MAP_EXTENSION, FileRecord


class StreamingUnsupportedError(Exception):
    """Raised when a record carries an unread stream instead of bytes."""

    code = "STREAMING_UNSUPPORTED"

    def __init__(self, path: str) -> None:
        reason = "Streaming not supported."
        super().__init__(f"{reason} ({path})")
        self.path = path
        self.reason = reason
        self.hint = "Read file contents into memory before revisioning."


def debug_map_target(record: FileRecord) -> str:
    """Return the path of the artifact a debug map describes.

    Uses the ``file`` property of the map's JSON body and falls back to the
    map's own name without ``.map``. Either is resolved against the map's
    directory.
    """
    name: str | None = None
    try:
        payload = json.loads(record.read_bytes())
    except (ValueError, RecursionError):
        payload = None
    if isinstance(payload, dict):
        candidate = payload.get("file")
        if isinstance(candidate, str) and candidate:
            name = candidate
    if name is None:
        name = os.path.basename(record.path)[: -len(DEBUG_MAP_EXTENSION)]
    return os.path.normpath(os.path.join(os.path.dirname(record.path), name))


class RevisionEngine:
    """Fingerprints records as they arrive and links debug maps at flush.

    ``process`` may be called any number of times, then ``flush`` exactly
    once. Ordinary records are emitted immediately in arrival order; debug
    maps are held back until the fingerprint of every artifact is known.
    """

    def __init__(self, hash_in_query: bool = False) -> None:
        self._mode = mode_for(hash_in_query)
        self._hash_map: dict[str, str] = {}
        self._deferred: list[FileRecord] = []
        self._finished = False

    @property
    def hash_map(self) -> dict[str, str]:
        """Return a snapshot of pre-revision path -> fingerprint."""
        return dict(self._hash_map)

    @property
    def pending_debug_maps(self) -> int:
        return len(self._deferred)

    def process(self, record: FileRecord) -> list[FileRecord]:
        """Handle one record, returning what should be forwarded downstream."""
        self._ensure_accumulating()
        if record.is_null():
            return [record]
        if record.is_stream():
            raise StreamingUnsupportedError(record.path)
        if record.is_debug_map():
            self._deferred.append(record)
            return []
        original_path = record.path
        fingerprint = self._revision(record)
        self._hash_map[os.path.normpath(original_path)] = fingerprint
        return [record]

    def flush(self) -> list[FileRecord]:
        """Resolve queued debug maps against the completed hash map."""
        self._ensure_accumulating()
        self._finished = True
        deferred, self._deferred = self._deferred, []
        return [self._link_debug_map(record) for record in deferred]

    def _ensure_accumulating(self) -> None:
        if self._finished:
            raise RuntimeError("RevisionEngine has already been flushed.")

    def _revision(self, record: FileRecord) -> str:
        previous = record.fingerprint
        fingerprint = rev_hash(record.read_bytes())
        record.original_path = record.path
        record.original_base = record.base
        record.fingerprint = fingerprint
        record.path = apply(record.path, fingerprint, self._mode, previous=previous)
        return fingerprint

    def _link_debug_map(self, record: FileRecord) -> FileRecord:
        fingerprint = self._hash_map.get(debug_map_target(record))
        if fingerprint is None:
            # no known artifact, so the map is revisioned from its own bytes
            self._revision(record)
            return record
        record.original_path = record.path
        record.original_base = record.base
        record.fingerprint = fingerprint
        artifact_path = record.path[: -len(DEBUG_MAP_EXTENSION)]
        record.path = (
            apply(revert(artifact_path, fingerprint), fingerprint, self._mode)
            + DEBUG_MAP_EXTENSION
        )
        return record
