"""Tests for the hashing module."""

import pytest

from access_keychain.errors import HashingError
from access_keychain.hashing import cache_key, check_secret, hash_secret


class TestHashSecret:
    """Tests for bcrypt hashing."""
    
    def test_hash_and_check(self):
        """A hash should verify its own secret only."""
        secret_hash = hash_secret("s3cret", rounds=4)
        
        assert check_secret("s3cret", secret_hash)
        assert not check_secret("wrong", secret_hash)
    
    def test_hashes_are_salted(self):
        """The same secret hashes differently each time."""
        assert hash_secret("s3cret", rounds=4) != hash_secret("s3cret", rounds=4)
    
    def test_default_cost_embedded(self):
        """The default cost factor is embedded in the hash."""
        assert hash_secret("s3cret").startswith(b"$2b$10$")
    
    def test_hash_has_no_separator_or_newline(self):
        """Hash output must be storable in the keychain format."""
        for _ in range(20):
            secret_hash = hash_secret("s3cret", rounds=4)
            assert b":" not in secret_hash
            assert b"\n" not in secret_hash
    
    def test_secret_too_long(self):
        """Secrets over 72 bytes cannot be hashed."""
        with pytest.raises(HashingError):
            hash_secret("x" * 73, rounds=4)
    
    def test_invalid_rounds(self):
        """bcrypt failures surface as HashingError."""
        with pytest.raises(HashingError):
            hash_secret("s3cret", rounds=1)
    
    def test_check_malformed_hash(self):
        """A corrupted hash never matches."""
        assert check_secret("s3cret", b"not-a-bcrypt-hash") is False


class TestCacheKey:
    """Tests for verification cache keys."""
    
    def test_is_sha512_sized(self):
        assert len(cache_key("KEY1", "s3cret")) == 64
    
    def test_deterministic(self):
        assert cache_key("KEY1", "s3cret") == cache_key("KEY1", "s3cret")
    
    def test_separator_prevents_ambiguity(self):
        """Moving characters between id and secret changes the key."""
        assert cache_key("ab", "c") != cache_key("a", "bc")
    
    def test_differs_by_secret(self):
        assert cache_key("KEY1", "s3cret") != cache_key("KEY1", "wrong")
