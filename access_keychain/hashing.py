"""
Hashing Module - Secret hashing and verification cache keys.

Secrets are hashed with bcrypt. Cache keys bind an id to a presented
secret with SHA-512 so that verification results can be memoized without
keeping the plaintext secret around.
"""

from typing import Union

import bcrypt
from cryptography.hazmat.primitives import hashes

from access_keychain.errors import HashingError


DEFAULT_COST = 10

# bcrypt only looks at the first 72 bytes of its input
MAX_SECRET_BYTES = 72

CACHE_KEY_SEPARATOR = b"\x00"


def _to_bytes(value: Union[str, bytes]) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def hash_secret(secret: Union[str, bytes], rounds: int = DEFAULT_COST) -> bytes:
    """
    Hash a secret using bcrypt.

    Args:
        secret: Plain text secret
        rounds: bcrypt cost factor

    Returns:
        bcrypt hash bytes, e.g. b"$2b$10$..."

    Raises:
        HashingError: If the secret is too long or bcrypt fails
    """
    secret_bytes = _to_bytes(secret)
    if len(secret_bytes) > MAX_SECRET_BYTES:
        raise HashingError(
            f"failed hashing secret: secret exceeds {MAX_SECRET_BYTES} bytes"
        )

    try:
        return bcrypt.hashpw(secret_bytes, bcrypt.gensalt(rounds=rounds))
    except (ValueError, TypeError) as e:
        raise HashingError(f"failed hashing secret: {e}") from e


def check_secret(secret: Union[str, bytes], secret_hash: bytes) -> bool:
    """Compare a secret against a bcrypt hash in constant time."""
    secret_bytes = _to_bytes(secret)
    if len(secret_bytes) > MAX_SECRET_BYTES:
        return False
    try:
        return bcrypt.checkpw(secret_bytes, secret_hash)
    except ValueError:
        # Malformed hash (e.g. a corrupted entry); it can never match.
        return False


def cache_key(key_id: str, secret: str) -> bytes:
    """
    Derive the 64-byte verification cache key for an id/secret pair.

    The NUL separator keeps ("ab", "c") and ("a", "bc") apart.
    """
    digest = hashes.Hash(hashes.SHA512())
    digest.update(_to_bytes(key_id))
    digest.update(CACHE_KEY_SEPARATOR)
    digest.update(_to_bytes(secret))
    return digest.finalize()
