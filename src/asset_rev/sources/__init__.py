"""Source tree discovery."""

from .discovery import discover_sources, is_excluded

__all__ = ["discover_sources", "is_excluded"]
