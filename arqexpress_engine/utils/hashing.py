"""
Hashing utilities for input fingerprints.
"""

from __future__ import annotations

import hashlib


def sha256_hash(content: str | bytes) -> str:
    """Return the SHA-256 hex digest of the given content."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()


def scope_fingerprint(scope) -> str:
    """
    Stable fingerprint of a ScopeParameters model.

    Field order is fixed by the model and unset optionals are dropped,
    so two equal inputs always hash the same regardless of how they
    were built.
    """
    canonical = scope.model_dump_json(exclude_none=True)
    return sha256_hash(canonical)
