"""Configuration loading and deterministic merge order."""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from pathlib import Path

from asset_rev.rev.manifest import DEFAULT_MANIFEST_PATH

CONFIG_FILENAME = "asset_rev.toml"
DEFAULT_SRC_DIR = "assets"
DEFAULT_DEST_DIR = "dist"
DEFAULT_DATA_DIR = ".asset_rev"
DEFAULT_EXCLUDE_GLOBS = (".git", ".DS_Store", "Thumbs.db")


@dataclass(slots=True, frozen=True)
class SourcesConfig:
    """Source discovery settings."""

    exclude_globs: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class RevConfig:
    """Revision engine settings."""

    hash_in_query: bool


@dataclass(slots=True, frozen=True)
class ManifestConfig:
    """Manifest output settings."""

    path: str
    merge: bool
    hash_in_query: bool


@dataclass(slots=True, frozen=True)
class BuildConfig:
    """Fully merged build configuration."""

    project_root: Path
    src_dir: Path
    dest_dir: Path
    data_dir: Path
    sources: SourcesConfig
    rev: RevConfig
    manifest: ManifestConfig

    def to_public_dict(self) -> dict[str, object]:
        """Return serializable config snapshot for run summaries."""
        return {
            "project_root": str(self.project_root),
            "src_dir": str(self.src_dir),
            "dest_dir": str(self.dest_dir),
            "data_dir": str(self.data_dir),
            "sources": {
                "exclude_globs": list(self.sources.exclude_globs),
            },
            "rev": {
                "hash_in_query": self.rev.hash_in_query,
            },
            "manifest": {
                "path": self.manifest.path,
                "merge": self.manifest.merge,
                "hash_in_query": self.manifest.hash_in_query,
            },
        }


@dataclass(slots=True, frozen=True)
class CliOverrides:
    """Optional command line overrides applied at highest precedence."""

    src_dir: Path | None = None
    dest_dir: Path | None = None
    data_dir: Path | None = None
    manifest_path: str | None = None
    merge: bool | None = None
    hash_in_query: bool | None = None


def default_config(project_root: Path) -> BuildConfig:
    """Build default config for a given project root."""
    resolved_root = project_root.resolve()
    return BuildConfig(
        project_root=resolved_root,
        src_dir=resolved_root / DEFAULT_SRC_DIR,
        dest_dir=resolved_root / DEFAULT_DEST_DIR,
        data_dir=resolved_root / DEFAULT_DATA_DIR,
        sources=SourcesConfig(exclude_globs=DEFAULT_EXCLUDE_GLOBS),
        rev=RevConfig(hash_in_query=False),
        manifest=ManifestConfig(path=DEFAULT_MANIFEST_PATH, merge=False, hash_in_query=False),
    )


def load_project_config_file(project_root: Path) -> dict[str, object]:
    """Load optional asset_rev.toml from project root."""
    config_path = project_root / CONFIG_FILENAME
    if not config_path.exists():
        return {}
    with config_path.open("rb") as handle:
        payload = tomllib.load(handle)
    if not isinstance(payload, dict):
        raise ValueError(f"{CONFIG_FILENAME} must contain a top-level table.")
    return payload


def _get_table(payload: dict[str, object], key: str) -> dict[str, object]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"Config section '{key}' must be a table.")
    return value


def _tuple_of_strings(value: object, section: str, field: str) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ValueError(f"Config field '{section}.{field}' must be a list of strings.")
    output: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"Config field '{section}.{field}' must contain only strings.")
        output.append(item)
    return tuple(output)


def _optional_bool(table: dict[str, object], section: str, field: str, default: bool) -> bool:
    if field not in table:
        return default
    value = table[field]
    if not isinstance(value, bool):
        raise ValueError(f"Config field '{section}.{field}' must be a boolean.")
    return value


def _optional_str(table: dict[str, object], section: str, field: str, default: str) -> str:
    if field not in table:
        return default
    value = table[field]
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Config field '{section}.{field}' must be a non-empty string.")
    return value


def merge_config(
    base: BuildConfig, project_payload: dict[str, object], overrides: CliOverrides
) -> BuildConfig:
    """Merge defaults, project config, then command line overrides."""
    paths_payload = _get_table(project_payload, "paths")
    sources_payload = _get_table(project_payload, "sources")
    rev_payload = _get_table(project_payload, "rev")
    manifest_payload = _get_table(project_payload, "manifest")

    root = base.project_root
    src_dir = base.src_dir
    if "src" in paths_payload:
        src_dir = root / _optional_str(paths_payload, "paths", "src", DEFAULT_SRC_DIR)
    dest_dir = base.dest_dir
    if "dest" in paths_payload:
        dest_dir = root / _optional_str(paths_payload, "paths", "dest", DEFAULT_DEST_DIR)
    data_dir = base.data_dir
    if "data_dir" in paths_payload:
        data_dir = root / _optional_str(paths_payload, "paths", "data_dir", DEFAULT_DATA_DIR)

    exclude_globs = base.sources.exclude_globs
    if "exclude_globs" in sources_payload:
        exclude_globs = _tuple_of_strings(
            sources_payload["exclude_globs"], "sources", "exclude_globs"
        )

    merged = BuildConfig(
        project_root=root,
        src_dir=src_dir,
        dest_dir=dest_dir,
        data_dir=data_dir,
        sources=SourcesConfig(exclude_globs=exclude_globs),
        rev=RevConfig(
            hash_in_query=_optional_bool(
                rev_payload, "rev", "hash_in_query", base.rev.hash_in_query
            )
        ),
        manifest=ManifestConfig(
            path=_optional_str(manifest_payload, "manifest", "path", base.manifest.path),
            merge=_optional_bool(manifest_payload, "manifest", "merge", base.manifest.merge),
            hash_in_query=_optional_bool(
                manifest_payload, "manifest", "hash_in_query", base.manifest.hash_in_query
            ),
        ),
    )
    return apply_cli_overrides(merged, overrides)


def apply_cli_overrides(config: BuildConfig, overrides: CliOverrides) -> BuildConfig:
    """Apply command line overrides at highest precedence."""
    rev = config.rev
    manifest = config.manifest
    if overrides.hash_in_query is not None:
        rev = RevConfig(hash_in_query=overrides.hash_in_query)
        manifest = ManifestConfig(
            path=manifest.path, merge=manifest.merge, hash_in_query=overrides.hash_in_query
        )
    if overrides.manifest_path is not None:
        if not overrides.manifest_path.strip():
            raise ValueError("Config field 'overrides.manifest_path' must be a non-empty string.")
        manifest = ManifestConfig(
            path=overrides.manifest_path, merge=manifest.merge, hash_in_query=manifest.hash_in_query
        )
    if overrides.merge is not None:
        manifest = ManifestConfig(
            path=manifest.path, merge=overrides.merge, hash_in_query=manifest.hash_in_query
        )
    src_dir = overrides.src_dir or config.src_dir
    dest_dir = overrides.dest_dir or config.dest_dir
    data_dir = overrides.data_dir or config.data_dir
    return BuildConfig(
        project_root=config.project_root,
        src_dir=src_dir.resolve(),
        dest_dir=dest_dir.resolve(),
        data_dir=data_dir.resolve(),
        sources=config.sources,
        rev=rev,
        manifest=manifest,
    )


def load_effective_config(project_root: Path, overrides: CliOverrides | None = None) -> BuildConfig:
    """Load effective config using merge order defaults -> project config -> overrides."""
    resolved_root = project_root.resolve()
    base = default_config(resolved_root)
    payload = load_project_config_file(resolved_root)
    return merge_config(base, payload, overrides or CliOverrides())
