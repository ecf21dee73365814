"""Content fingerprinting."""

from __future__ import annotations

import hashlib

FINGERPRINT_LENGTH = 10


def rev_hash(contents: bytes) -> str:
    """Return a short deterministic fingerprint for a byte sequence."""
    return hashlib.md5(contents, usedforsecurity=False).hexdigest()[:FINGERPRINT_LENGTH]
