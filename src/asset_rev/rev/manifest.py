"""Manifest aggregation of original -> revisioned artifact names."""

from __future__ import annotations

import json
import os
import posixpath
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from asset_rev.rev.filename import query_suffix
from asset_rev.rev.models import FileRecord, rel_path

DEFAULT_MANIFEST_PATH = "rev-manifest.json"
MANIFEST_INDENT = 2


class ManifestTransformer(Protocol):
    """Serialization backend for the manifest document."""

    def parse(self, text: str) -> object:
        """Decode a previously written manifest."""

    def stringify(self, payload: dict[str, str], indent: int) -> str:
        """Encode the manifest mapping."""


class JsonTransformer:
    """Default transformer producing JSON text."""

    def parse(self, text: str) -> object:
        return json.loads(text)

    def stringify(self, payload: dict[str, str], indent: int) -> str:
        return json.dumps(payload, indent=indent, ensure_ascii=False)


class ManifestReader(Protocol):
    """Callback loading a previously written manifest record."""

    def __call__(self, path: str, base: str) -> FileRecord:
        """Return the record at path; raise FileNotFoundError when absent."""


def read_manifest_file(path: str, base: str) -> FileRecord:
    """Load a manifest record from the local filesystem."""
    return FileRecord(path=path, base=base, contents=Path(path).read_bytes())


class ManifestReadError(Exception):
    """Raised when an existing manifest cannot be read."""

    code = "MANIFEST_READ_FAILED"

    def __init__(self, path: str, detail: str) -> None:
        reason = "Existing manifest could not be read."
        super().__init__(f"{reason} ({path}: {detail})")
        self.path = path
        self.reason = reason
        self.hint = "Check permissions on the manifest path or remove the file."


@dataclass(slots=True, frozen=True)
class ManifestOptions:
    """Manifest output settings."""

    path: str = DEFAULT_MANIFEST_PATH
    merge: bool = False
    transformer: ManifestTransformer = field(default_factory=JsonTransformer)
    hash_in_query: bool = False
    cwd: str | None = None
    base: str | None = None


class ManifestBuilder:
    """Collects rename metadata and emits one manifest record at flush."""

    def __init__(
        self,
        options: ManifestOptions | str | None = None,
        reader: ManifestReader = read_manifest_file,
    ) -> None:
        if options is None:
            options = ManifestOptions()
        elif isinstance(options, str):
            options = ManifestOptions(path=options)
        self._options = options
        self._reader = reader
        self._entries: dict[str, str] = {}
        self._finished = False

    @property
    def options(self) -> ManifestOptions:
        return self._options

    @property
    def entries(self) -> dict[str, str]:
        """Return entries collected so far, in insertion order."""
        return dict(self._entries)

    def process(self, record: FileRecord) -> list[FileRecord]:
        """Record one revisioned file; nothing is forwarded."""
        self._ensure_accumulating()
        if not record.path or record.original_path is None:
            return []
        revisioned = rel_path(record.base, record.path)
        original = posixpath.normpath(
            posixpath.join(
                posixpath.dirname(revisioned), os.path.basename(record.original_path)
            )
        )
        if self._options.hash_in_query:
            self._entries[original] = query_suffix(original, record.fingerprint or "")
        else:
            self._entries[original] = revisioned
        return []

    def flush(self) -> list[FileRecord]:
        """Merge with any prior manifest and emit the serialized record."""
        self._ensure_accumulating()
        self._finished = True
        if not self._entries:
            return []
        manifest = self._load_prior()
        combined = dict(self._entries)
        if self._options.merge and not manifest.is_null():
            combined = {**self._parse_prior(manifest), **combined}
        ordered = {key: combined[key] for key in sorted(combined)}
        text = self._options.transformer.stringify(ordered, indent=MANIFEST_INDENT)
        manifest.contents = text.encode("utf-8")
        return [manifest]

    def _ensure_accumulating(self) -> None:
        if self._finished:
            raise RuntimeError("ManifestBuilder has already been flushed.")

    def _load_prior(self) -> FileRecord:
        cwd = self._options.cwd or os.getcwd()
        path = os.path.abspath(os.path.join(cwd, self._options.path))
        base = self._options.base or cwd
        try:
            return self._reader(path, base)
        except FileNotFoundError:
            return FileRecord(path=path, base=base)
        except OSError as exc:
            raise ManifestReadError(path, exc.strerror or str(exc)) from exc

    def _parse_prior(self, manifest: FileRecord) -> dict[str, object]:
        try:
            parsed = self._options.transformer.parse(manifest.read_bytes().decode("utf-8"))
        except Exception:
            # transformers raise their own error types; an unreadable manifest merges as empty
            return {}
        if not isinstance(parsed, dict):
            return {}
        return dict(parsed)
