"""Content-hash revisioning of build artifacts with a rename manifest."""

from .rev import (
    FileRecord,
    ManifestBuilder,
    ManifestOptions,
    ManifestReadError,
    RevisionEngine,
    StreamingUnsupportedError,
    run_stages,
)

__all__ = [
    "FileRecord",
    "ManifestBuilder",
    "ManifestOptions",
    "ManifestReadError",
    "RevisionEngine",
    "StreamingUnsupportedError",
    "run_stages",
]
