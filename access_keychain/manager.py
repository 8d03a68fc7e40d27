"""
Manager Module - High-level keychain administration.

Ties a keychain to its backing file and the audit log: every change is
saved immediately and recorded without the secret.
"""

import os
from pathlib import Path
from typing import Optional, Union

from access_keychain.errors import KeychainError
from access_keychain.generator import AccessKey, create_access_key
from access_keychain.keychain import Keychain, load_keychain
from access_keychain.logger import AuditLogger


DEFAULT_KEYCHAIN_PATH = os.path.join(
    os.path.expanduser("~"), ".access_keychain", "access.keychain"
)
KEYCHAIN_PATH_ENV = "ACCESS_KEYCHAIN_FILE"


def resolve_keychain_path(path: Optional[Union[str, Path]] = None) -> str:
    """Pick the keychain file: explicit path, then environment, then default."""
    if path:
        return os.path.expanduser(str(path))
    env_path = os.environ.get(KEYCHAIN_PATH_ENV)
    if env_path:
        return os.path.expanduser(env_path)
    return DEFAULT_KEYCHAIN_PATH


class KeychainManager:
    """
    Administrative interface over a persisted keychain.

    Loading happens lazily on first use; a missing file starts an empty
    keychain that is created by the first save.
    """

    def __init__(
        self,
        keychain_path: Optional[Union[str, Path]] = None,
        log_dir: Optional[str] = None,
        console_output: bool = False
    ):
        """
        Initialize the keychain manager.

        Args:
            keychain_path: Keychain file (see resolve_keychain_path)
            log_dir: Directory for audit logs
            console_output: Mirror audit logs to the console
        """
        self.keychain_path = resolve_keychain_path(keychain_path)
        self.logger = AuditLogger(log_dir=log_dir, console_output=console_output)
        self._keychain: Optional[Keychain] = None

    @property
    def keychain(self) -> Keychain:
        if self._keychain is None:
            self._keychain = load_keychain(self.keychain_path)
            self.logger.log_keychain_loaded(self.keychain_path, len(self._keychain))
        return self._keychain

    def create_key(self) -> AccessKey:
        """
        Create, store and save a new access key.

        If the save fails the key is dropped again, since its secret is
        never handed out.

        Returns:
            The new AccessKey; its secret is not recoverable afterwards
        """
        access_key = create_access_key()
        self._put_and_save(access_key.id, access_key.secret_hash)
        self.logger.log_key_created(access_key.id)
        return access_key

    def add_key(self, key_id: str, secret_hash: Union[bytes, str]) -> None:
        """Store an existing id/hash pair and save."""
        self._put_and_save(key_id, secret_hash)
        self.logger.log_key_added(key_id)

    def remove_key(self, key_id: str) -> bool:
        """
        Remove a key and save. The key is restored if the save fails.

        Returns:
            True if the key existed
        """
        keychain = self.keychain
        previous = keychain.get_hash(key_id)
        if previous is None or not keychain.remove(key_id):
            self.logger.log_warning("KEY_REMOVE_MISSING", key_id=key_id)
            return False
        try:
            self.save()
        except KeychainError as e:
            keychain.add(key_id, previous)
            self.logger.log_error("KEY_REMOVE_FAILED", key_id=key_id, error=e)
            raise
        self.logger.log_key_removed(key_id)
        return True

    def _put_and_save(self, key_id: str, secret_hash: Union[bytes, str]) -> None:
        keychain = self.keychain
        previous = keychain.get_hash(key_id)
        keychain.add(key_id, secret_hash)
        try:
            self.save()
        except KeychainError as e:
            if previous is None:
                keychain.remove(key_id)
            else:
                keychain.add(key_id, previous)
            self.logger.log_error("KEY_SAVE_FAILED", key_id=key_id, error=e)
            raise

    def list_keys(self) -> list[str]:
        return sorted(self.keychain.ids())

    def verify(self, key_id: str, secret: str) -> bool:
        """Verify a credential pair and record the outcome."""
        ok = self.keychain.verify(key_id, secret)
        self.logger.log_authentication(key_id, ok)
        return ok

    def save(self) -> None:
        keychain = self.keychain
        keychain.save()
        self.logger.log_keychain_saved(self.keychain_path, len(keychain))

    def get_stats(self) -> dict:
        """Get keychain statistics."""
        keychain = self.keychain
        return {
            "path": self.keychain_path,
            "exists": os.path.exists(self.keychain_path),
            "keys": len(keychain),
            "cache_size": keychain.cache.size,
            "cached_results": len(keychain.cache),
        }

    def get_logs(self, lines: int = 100) -> list:
        return self.logger.get_recent_logs(lines)

    def close(self) -> None:
        self.logger.close()
