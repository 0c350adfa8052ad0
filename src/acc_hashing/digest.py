"""Digest engine and hex encoder shared by every hashing entry point."""

from __future__ import annotations

import hashlib
from typing import Final

__all__ = [
    "DIGEST_ALGORITHM",
    "DIGEST_SIZE",
    "EMPTY_SEQUENCE_DIGEST",
    "digest_bytes",
    "to_hex",
]

DIGEST_ALGORITHM: Final = "sha256"
DIGEST_SIZE: Final = 32


def digest_bytes(data: bytes) -> bytes:
    """Return the SHA-256 digest of ``data``."""

    return hashlib.sha256(data).digest()


def to_hex(digest: bytes) -> str:
    """Render a digest as lowercase, unprefixed base-16 in byte order."""

    return bytes(digest).hex()


EMPTY_SEQUENCE_DIGEST: Final = digest_bytes(b"[]")
"""Digest of an empty condition sequence.

Hex: ``4f53cda18c2baa0c0354bb5f9a3ecbe5ed12ab4d8e11ba873c2f11161202b945``.
"""
