"""Destination confinement for files the host writes."""

from __future__ import annotations

from pathlib import Path


class PathBlockedError(Exception):
    """Raised when a record or the manifest would be written outside dest."""

    code = "PATH_BLOCKED"

    def __init__(self, path: str, dest_root: Path) -> None:
        reason = "Output path escapes the destination root."
        super().__init__(f"{reason} ({path})")
        self.path = path
        self.reason = reason
        self.hint = f"Keep record paths and the manifest path under {dest_root}."


def output_target(dest_root: Path, relative: str) -> Path:
    """Return the file under dest_root that a dest-relative path names.

    Backslash separators are accepted. The target must be a file strictly
    inside dest_root after symlinks are resolved.
    """
    root = dest_root.resolve()
    target = (root / relative.replace("\\", "/")).resolve(strict=False)
    if target == root or not target.is_relative_to(root):
        raise PathBlockedError(relative, root)
    return target
