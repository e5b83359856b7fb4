from .logger import setup_logging
from .hashing import sha256_hash, scope_fingerprint

__all__ = ["setup_logging", "sha256_hash", "scope_fingerprint"]
