"""
Access Keychain - API access key store

Generates access key ids and secrets, keeps bcrypt hashes of the secrets
in a flat-file keychain, and verifies presented credentials with a
cached, thread-safe lookup.
"""

__version__ = "1.0.0"

from access_keychain.errors import (
    GenerationError,
    HashingError,
    InvalidEntryError,
    KeychainError,
    KeychainIOError,
)
from access_keychain.generator import AccessKey, create_access_key
from access_keychain.guard import GuardResult, guard, parse_basic_auth
from access_keychain.hashing import hash_secret
from access_keychain.keychain import Keychain, load_keychain
from access_keychain.manager import KeychainManager
from access_keychain.logger import AuditLogger

__all__ = [
    "AccessKey",
    "AuditLogger",
    "GenerationError",
    "GuardResult",
    "HashingError",
    "InvalidEntryError",
    "Keychain",
    "KeychainError",
    "KeychainIOError",
    "KeychainManager",
    "create_access_key",
    "guard",
    "hash_secret",
    "load_keychain",
    "parse_basic_auth",
]
