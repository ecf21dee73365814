"""Pipeline record model shared by the revisioning stages."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import BinaryIO

DEBUG_MAP_EXTENSION = ".map"


def rel_path(base: str, file_path: str) -> str:
    """Return file_path relative to base with forward slashes."""
    if not file_path.startswith(base):
        return file_path.replace("\\", "/")
    relative = file_path[len(base) :].replace("\\", "/")
    if relative.startswith("/"):
        return relative[1:]
    return relative


@dataclass(slots=True)
class FileRecord:
    """One artifact moving through the pipeline.

    ``contents`` is ``None`` for directory placeholders, ``bytes`` once the
    file is materialized, or an open binary stream that has not been read.
    The ``original_*`` and ``fingerprint`` fields are filled in by the
    revision engine.
    """

    path: str
    base: str
    contents: bytes | BinaryIO | None = None
    original_path: str | None = None
    original_base: str | None = None
    fingerprint: str | None = None

    @property
    def relative(self) -> str:
        """Return the current path relative to base."""
        return rel_path(self.base, self.path)

    def is_null(self) -> bool:
        return self.contents is None

    def is_buffer(self) -> bool:
        return isinstance(self.contents, (bytes, bytearray))

    def is_stream(self) -> bool:
        return not self.is_null() and not self.is_buffer()

    def is_debug_map(self) -> bool:
        return os.path.splitext(self.path)[1] == DEBUG_MAP_EXTENSION

    def read_bytes(self) -> bytes:
        """Return in-memory contents, failing for null or stream records."""
        if not isinstance(self.contents, (bytes, bytearray)):
            raise TypeError(f"Record has no in-memory contents: {self.path}")
        return bytes(self.contents)
