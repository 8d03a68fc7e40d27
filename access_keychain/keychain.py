"""
Keychain Module - The set of access keys allowed to use the API.

A keychain maps key ids to bcrypt hashes of their secrets, memoizes
verification results in a bounded LRU cache, and persists itself to a
flat file with one ``id:hash`` entry per line.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from access_keychain.cache import DEFAULT_CACHE_SIZE, VerificationCache
from access_keychain.errors import InvalidEntryError, KeychainIOError
from access_keychain.guard import parse_basic_auth
from access_keychain import hashing
from access_keychain.locks import ReadWriteLock


SEPARATOR = b":"
NEWLINE = b"\n"
FILE_MODE = 0o600

logger = logging.getLogger(__name__)


class Keychain:
    """
    Collection of access keys that are allowed to use the API.

    Verification and enumeration run concurrently under a shared read
    lock; add, remove, save and reload take the exclusive write lock.
    """

    def __init__(
        self,
        name: Union[str, Path],
        keys: Optional[dict[str, bytes]] = None,
        cache_size: Optional[int] = None
    ):
        """
        Create a keychain.

        Args:
            name: Path of the backing file
            keys: Initial id -> hash mapping
            cache_size: Verification cache capacity. Defaults to the number
                        of keys, or 128 for an empty keychain (minimum 8).
        """
        self.name = str(name)
        self._keys: dict[str, bytes] = dict(keys or {})
        if cache_size is None:
            cache_size = len(self._keys) or DEFAULT_CACHE_SIZE
        self._cache = VerificationCache(cache_size)
        self._lock = ReadWriteLock()

    def __repr__(self) -> str:
        return f"Keychain(name={self.name!r}, keys={len(self)})"

    @property
    def cache(self) -> VerificationCache:
        return self._cache

    # === Administrative operations ===

    def add(self, key_id: str, secret_hash: Union[bytes, str]) -> None:
        """Add or replace the hash stored for key_id."""
        if isinstance(secret_hash, str):
            try:
                secret_hash = secret_hash.encode("ascii")
            except UnicodeEncodeError as e:
                raise InvalidEntryError("hash must be ASCII") from e
        if not key_id or not secret_hash:
            raise InvalidEntryError("key id and hash must be non-empty")
        if not _is_storable_id(key_id):
            raise InvalidEntryError(
                f"key id must be UTF-8 without ':', NUL or newline: {key_id!r}"
            )
        if NEWLINE in secret_hash:
            raise InvalidEntryError("hash must not contain a newline")

        with self._lock.write():
            self._keys[key_id] = bytes(secret_hash)
            # A re-keyed id must not verify against the old secret.
            self._cache.invalidate(key_id)
        logger.debug("Added key %s", key_id)

    def remove(self, key_id: str) -> bool:
        """
        Remove key_id from the keychain.

        Returns:
            True if the key existed, False otherwise
        """
        with self._lock.write():
            if key_id not in self._keys:
                return False
            del self._keys[key_id]
            self._cache.invalidate(key_id)
        logger.debug("Removed key %s", key_id)
        return True

    def ids(self) -> list[str]:
        """Return all key ids, in no particular order."""
        with self._lock.read():
            return list(self._keys)

    def get_hash(self, key_id: str) -> Optional[bytes]:
        with self._lock.read():
            return self._keys.get(key_id)

    def size(self) -> int:
        with self._lock.read():
            return len(self._keys)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, key_id: object) -> bool:
        with self._lock.read():
            return key_id in self._keys

    # === Verification ===

    def verify(self, key_id: str, secret: str) -> bool:
        """
        Check a presented id/secret pair.

        Unknown ids are rejected without hashing. Results for known ids are
        cached, so repeating a pair does not repeat the bcrypt comparison.
        """
        if not isinstance(key_id, str) or not isinstance(secret, str):
            return False
        if not _is_encodable(key_id) or not _is_encodable(secret):
            return False

        with self._lock.read():
            secret_hash = self._keys.get(key_id)
            if secret_hash is None:
                return False

            key = hashing.cache_key(key_id, secret)
            cached = self._cache.get(key)
            if cached is not None:
                return cached

            ok = hashing.check_secret(secret, secret_hash)
            self._cache.put(key, key_id, ok)
            return ok

    def allow(self, authorization: Optional[str]) -> bool:
        """Verify the credentials in an HTTP Basic Authorization header."""
        credentials = parse_basic_auth(authorization)
        if credentials is None:
            return False
        return self.verify(*credentials)

    # === Persistence ===

    def dumps(self) -> bytes:
        """Serialize the keychain to its file format."""
        with self._lock.read():
            return _serialize(self._keys)

    def save(self) -> None:
        """
        Write the keychain to its backing file.

        The file is replaced atomically and is readable by the owner only.

        Raises:
            KeychainIOError: If the file cannot be written
        """
        with self._lock.write():
            data = _serialize(self._keys)
            _write_atomic(self.name, data)
            count = len(self._keys)
        logger.debug("Saved %d keys to %s", count, self.name)

    def reload(self) -> None:
        """
        Re-read the backing file, replacing all keys and cached results.

        Raises:
            InvalidEntryError: If the file contains a malformed entry
            KeychainIOError: If the file cannot be read
        """
        with self._lock.write():
            keys = _read_keys(self.name)
            self._keys = keys if keys is not None else {}
            self._cache.clear()
        logger.debug("Reloaded %s", self.name)


def load_keychain(name: Union[str, Path]) -> Keychain:
    """
    Load a keychain from a file.

    A missing file yields a new, empty keychain so that the first run can
    bootstrap one.

    Raises:
        InvalidEntryError: If the file contains a malformed entry
        KeychainIOError: If the file cannot be read
    """
    keys = _read_keys(str(name))
    if keys is None:
        logger.debug("Keychain %s not found, starting empty", name)
        return Keychain(name, cache_size=DEFAULT_CACHE_SIZE)
    logger.debug("Loaded %d keys from %s", len(keys), name)
    return Keychain(name, keys, cache_size=len(keys))


def loads(data: bytes, name: str = "<memory>") -> dict[str, bytes]:
    """
    Parse keychain file contents into an id -> hash mapping.

    Raises:
        InvalidEntryError: If any non-empty line is malformed
    """
    keys: dict[str, bytes] = {}
    for line_number, line in enumerate(data.split(NEWLINE), 1):
        if not line:
            continue
        key_id, sep, secret_hash = line.partition(SEPARATOR)
        if not sep or not key_id or not secret_hash:
            raise InvalidEntryError(path=name, line_number=line_number)
        try:
            decoded_id = key_id.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidEntryError(path=name, line_number=line_number) from e
        if not _is_storable_id(decoded_id):
            raise InvalidEntryError(path=name, line_number=line_number)
        keys[decoded_id] = secret_hash
    return keys


def _is_encodable(value: str) -> bool:
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _is_storable_id(key_id: str) -> bool:
    # NUL separates id from secret in verification cache keys
    if any(c in key_id for c in (":", "\n", "\x00")):
        return False
    return _is_encodable(key_id)


def _serialize(keys: dict[str, bytes]) -> bytes:
    parts = []
    for key_id, secret_hash in keys.items():
        parts.append(key_id.encode("utf-8") + SEPARATOR + secret_hash + NEWLINE)
    return b"".join(parts)


def _read_keys(name: str) -> Optional[dict[str, bytes]]:
    try:
        with open(name, "rb") as f:
            data = f.read()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise KeychainIOError(f"failed reading {name}: {e}", name) from e
    return loads(data, name)


def _write_atomic(name: str, data: bytes) -> None:
    path = Path(name)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        # mkstemp creates the file with mode 0600
        fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    except OSError as e:
        raise KeychainIOError(f"failed writing {name}: {e}", name) from e

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp, FILE_MODE)
        os.replace(tmp, name)
    except OSError as e:
        try:
            os.unlink(tmp)
        except FileNotFoundError:
            pass
        raise KeychainIOError(f"failed writing {name}: {e}", name) from e
