"""
Errors Module - Exception taxonomy for the keychain.

Verification failures are never exceptions; these only cover operations
that cannot complete (entropy, hashing, persistence).
"""

from typing import Optional


class KeychainError(Exception):
    """Base exception for keychain errors."""
    pass


class GenerationError(KeychainError):
    """Raised when the random source fails while generating a credential."""
    pass


class HashingError(KeychainError):
    """Raised when a secret cannot be hashed."""
    pass


class InvalidEntryError(KeychainError):
    """Raised when a persisted keychain entry is malformed."""
    
    def __init__(
        self,
        message: str = "invalid entry found in keychain",
        path: Optional[str] = None,
        line_number: Optional[int] = None
    ):
        self.path = path
        self.line_number = line_number
        if path is not None and line_number is not None:
            message = f"{message}: {path}:{line_number}"
        super().__init__(message)


class KeychainIOError(KeychainError):
    """Raised when the keychain file cannot be read or written."""
    
    def __init__(self, message: str, path: str):
        self.path = path
        super().__init__(message)
