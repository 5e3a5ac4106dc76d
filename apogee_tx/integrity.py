"""
Hashing helpers for envelopes and network identifiers.
"""

import hashlib


def sha256_digest(data: bytes) -> str:
    """Compute SHA256 hex digest of bytes."""
    return hashlib.sha256(data).hexdigest()


def network_id(network_passphrase: str) -> bytes:
    """Raw 32-byte network identifier derived from the passphrase."""
    return hashlib.sha256(network_passphrase.encode("utf-8")).digest()
