"""Content fingerprinting, debug-map linking and manifest stages."""

from .engine import RevisionEngine, StreamingUnsupportedError, debug_map_target
from .filename import QUERY_MODE, SEGMENT_MODE, apply, mode_for, query_suffix, revert
from .hashing import rev_hash
from .manifest import (
    DEFAULT_MANIFEST_PATH,
    JsonTransformer,
    ManifestBuilder,
    ManifestOptions,
    ManifestReadError,
    ManifestReader,
    ManifestTransformer,
    read_manifest_file,
)
from .models import FileRecord, rel_path
from .stream import Stage, run_stages

__all__ = [
    "DEFAULT_MANIFEST_PATH",
    "FileRecord",
    "JsonTransformer",
    "ManifestBuilder",
    "ManifestOptions",
    "ManifestReadError",
    "ManifestReader",
    "ManifestTransformer",
    "QUERY_MODE",
    "RevisionEngine",
    "SEGMENT_MODE",
    "Stage",
    "StreamingUnsupportedError",
    "apply",
    "debug_map_target",
    "mode_for",
    "query_suffix",
    "read_manifest_file",
    "rel_path",
    "rev_hash",
    "revert",
    "run_stages",
]
