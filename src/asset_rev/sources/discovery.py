"""Deterministic source discovery feeding the revision stages."""

from __future__ import annotations

import fnmatch
import os
from pathlib import Path

from asset_rev.config import SourcesConfig
from asset_rev.rev.models import FileRecord


def discover_sources(src_root: Path, config: SourcesConfig) -> list[FileRecord]:
    """Read every non-excluded file under src_root into memory, ordered by path.

    Symlinked files and directories are skipped. An excluded directory is not
    descended into.
    """
    root = src_root.resolve()
    if not root.is_dir():
        return []
    records: list[FileRecord] = []
    for current, dir_names, file_names in os.walk(root):
        folder = Path(current)
        prefix = folder.relative_to(root).as_posix()
        prefix = "" if prefix == "." else f"{prefix}/"
        dir_names[:] = [
            name
            for name in dir_names
            if not (folder / name).is_symlink()
            and not is_excluded(f"{prefix}{name}/", config.exclude_globs)
        ]
        for name in file_names:
            full_path = folder / name
            if full_path.is_symlink() or is_excluded(f"{prefix}{name}", config.exclude_globs):
                continue
            records.append(
                FileRecord(path=str(full_path), base=str(root), contents=full_path.read_bytes())
            )
    records.sort(key=lambda record: record.relative)
    return records


def is_excluded(relative: str, exclude_globs: tuple[str, ...]) -> bool:
    """Return True when a src-relative path matches an exclude glob.

    Directories are passed with a trailing ``/``. A pattern without ``/``
    matches the final name at any depth; any other pattern matches the whole
    path, with or without a leading ``/``.
    """
    name = relative.rstrip("/").rsplit("/", 1)[-1]
    anchored = f"/{relative}"
    for pattern in exclude_globs:
        if "/" not in pattern:
            if fnmatch.fnmatchcase(name, pattern):
                return True
        elif fnmatch.fnmatchcase(relative, pattern) or fnmatch.fnmatchcase(anchored, pattern):
            return True
    return False
