"""
Generator Module - Secure generation of access key credentials.

Ids and secrets are drawn from os.urandom using rejection sampling so that
every character of the alphabet is equally likely.
"""

import logging
import os
from dataclasses import dataclass
from typing import Callable, Iterator

from access_keychain.errors import GenerationError
from access_keychain.hashing import hash_secret


ID_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
SECRET_CHARS = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"

ID_LENGTH = 20
SECRET_LENGTH = 40

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessKey:
    """A freshly created credential. The secret is only available here."""

    id: str
    secret: str
    secret_hash: bytes

    def __iter__(self) -> Iterator:
        return iter((self.id, self.secret, self.secret_hash))

    def __repr__(self) -> str:
        return f"AccessKey(id={self.id!r}, secret='***')"


def generate_random_string(
    chars: str,
    n: int,
    randbytes: Callable[[int], bytes] = os.urandom
) -> str:
    """
    Generate a string of n characters drawn uniformly from chars.

    Bytes above the largest multiple of len(chars) that fits in a byte
    are discarded, so the result carries no modulo bias.

    Args:
        chars: Alphabet to draw from (1 to 256 characters)
        n: Number of characters to produce
        randbytes: Secure byte source, os.urandom by default

    Returns:
        Random string of length n

    Raises:
        GenerationError: If the random source fails
    """
    k = len(chars)
    if k == 0 or k > 256:
        raise ValueError(f"alphabet size must be between 1 and 256, got {k}")
    if n <= 0:
        return ""

    umax = 255 - (256 % k)
    batch = n + (n // 4)
    result = []

    while True:
        try:
            rb = randbytes(batch)
        except (OSError, NotImplementedError) as e:
            raise GenerationError(f"failed generating random bytes: {e}") from e
        if len(rb) != batch:
            raise GenerationError(
                f"failed generating random bytes: short read ({len(rb)} of {batch})"
            )

        for b in rb:
            if b > umax:  # modulo bias
                continue
            result.append(chars[b % k])
            if len(result) == n:
                return "".join(result)


def create_access_key(randbytes: Callable[[int], bytes] = os.urandom) -> AccessKey:
    """
    Create a new access key id, secret and secret hash.

    The caller is responsible for handing the secret to the key owner;
    nothing here keeps a copy of it.
    """
    key_id = generate_random_string(ID_CHARS, ID_LENGTH, randbytes)
    secret = generate_random_string(SECRET_CHARS, SECRET_LENGTH, randbytes)
    secret_hash = hash_secret(secret)
    logger.debug("Generated access key %s", key_id)
    return AccessKey(id=key_id, secret=secret, secret_hash=secret_hash)
