"""Output path safety primitives."""

from .paths import PathBlockedError, output_target

__all__ = ["PathBlockedError", "output_target"]
