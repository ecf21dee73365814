"""Reversible fingerprint encoding for filenames."""

from __future__ import annotations

import os
from collections.abc import Callable
from typing import Final, Literal

RevMode = Literal["segment", "query"]

SEGMENT_MODE: Final[RevMode] = "segment"
QUERY_MODE: Final[RevMode] = "query"
FINGERPRINT_SEPARATOR: Final[str] = "-"
QUERY_PARAMETER: Final[str] = "v"


def mode_for(hash_in_query: bool) -> RevMode:
    """Map the boolean option used in configuration onto a codec mode."""
    return QUERY_MODE if hash_in_query else SEGMENT_MODE


def split_filename(filename: str) -> tuple[str, str]:
    """Split at the first dot so multi-suffix names keep their full suffix chain."""
    index = filename.find(".")
    if index == -1:
        return filename, ""
    return filename[:index], filename[index:]


def modify_filename(path: str, modify: Callable[[str, str], str]) -> str:
    """Rebuild the basename of path from modify(stem, outer_extension)."""
    directory, filename = os.path.split(path)
    stem, extension = os.path.splitext(filename)
    return os.path.join(directory, modify(stem, extension))


def rev_path(path: str, fingerprint: str) -> str:
    """Insert the fingerprint before the outer extension."""
    return modify_filename(
        path, lambda stem, extension: f"{stem}{FINGERPRINT_SEPARATOR}{fingerprint}{extension}"
    )


def revert_rev_path(path: str, fingerprint: str) -> str:
    """Remove a trailing fingerprint from the stem; no-op when absent."""
    marker = f"{FINGERPRINT_SEPARATOR}{fingerprint}"

    def _strip(stem: str, extension: str) -> str:
        if stem.endswith(marker):
            stem = stem[: -len(marker)]
        return stem + extension

    return modify_filename(path, _strip)


def query_suffix(path: str, fingerprint: str) -> str:
    """Return path with the fingerprint as a version query parameter."""
    return f"{path}?{QUERY_PARAMETER}={fingerprint}"


def apply(
    path: str,
    fingerprint: str,
    mode: RevMode = SEGMENT_MODE,
    previous: str | None = None,
) -> str:
    """Encode fingerprint into the filename of path.

    Any occurrence of ``fingerprint`` (and of ``previous``, a stale
    fingerprint from an earlier pass) is reverted first, so re-applying the
    transform never stacks fingerprints. Query mode leaves the on-disk name
    as it is; the fingerprint is exposed through ``query_suffix`` instead.
    """

    def _insert(stem: str, extension: str) -> str:
        leading, inner = split_filename(stem)
        for stale in (previous, fingerprint):
            if stale:
                leading = revert_rev_path(leading, stale)
        revved = rev_path(leading, fingerprint)
        if mode == QUERY_MODE:
            revved = revert_rev_path(revved, fingerprint)
        return revved + inner + extension

    return modify_filename(path, _insert)


def revert(path: str, fingerprint: str) -> str:
    """Undo apply() for either mode."""
    suffix = query_suffix("", fingerprint)
    if path.endswith(suffix):
        return path[: -len(suffix)]

    def _strip(stem: str, extension: str) -> str:
        leading, inner = split_filename(stem)
        return revert_rev_path(leading, fingerprint) + inner + extension

    return modify_filename(path, _strip)
