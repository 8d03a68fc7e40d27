"""Tests for the manager module."""

import os
import tempfile

import pytest

from access_keychain.errors import KeychainIOError
from access_keychain.hashing import hash_secret
from access_keychain.keychain import load_keychain
from access_keychain.manager import (
    DEFAULT_KEYCHAIN_PATH,
    KEYCHAIN_PATH_ENV,
    KeychainManager,
    resolve_keychain_path,
)


class TestResolveKeychainPath:
    """Tests for keychain path configuration."""
    
    def test_explicit_path_wins(self, monkeypatch):
        monkeypatch.setenv(KEYCHAIN_PATH_ENV, "/from/env")
        
        assert resolve_keychain_path("/explicit") == "/explicit"
    
    def test_environment(self, monkeypatch):
        monkeypatch.setenv(KEYCHAIN_PATH_ENV, "/from/env")
        
        assert resolve_keychain_path() == "/from/env"
    
    def test_default(self, monkeypatch):
        monkeypatch.delenv(KEYCHAIN_PATH_ENV, raising=False)
        
        assert resolve_keychain_path() == DEFAULT_KEYCHAIN_PATH


class TestKeychainManager:
    """Tests for the KeychainManager class."""
    
    @pytest.fixture
    def temp_dir(self):
        """Create a temporary directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            yield tmpdir
    
    @pytest.fixture
    def manager(self, temp_dir):
        """Create a manager with a temp keychain and log dir."""
        manager = KeychainManager(
            keychain_path=os.path.join(temp_dir, "access.keychain"),
            log_dir=os.path.join(temp_dir, "logs")
        )
        yield manager
        manager.close()
    
    def test_create_key_saves(self, manager):
        """Created keys are persisted and verifiable."""
        access_key = manager.create_key()
        
        reloaded = load_keychain(manager.keychain_path)
        assert reloaded.ids() == [access_key.id]
        assert reloaded.verify(access_key.id, access_key.secret)
    
    def test_create_key_logs_id_not_secret(self, manager):
        access_key = manager.create_key()
        
        logs = "".join(manager.get_logs())
        assert "KEY_CREATED" in logs
        assert access_key.id in logs
        assert access_key.secret not in logs
        assert access_key.secret_hash.decode() not in logs
    
    def test_remove_key(self, manager):
        access_key = manager.create_key()
        
        assert manager.remove_key(access_key.id) is True
        assert manager.remove_key(access_key.id) is False
        assert len(load_keychain(manager.keychain_path)) == 0
    
    def test_list_keys_sorted(self, manager):
        manager.add_key("B", b"h2")
        manager.add_key("A", b"h1")
        
        assert manager.list_keys() == ["A", "B"]
    
    def test_verify_logs_outcome(self, manager):
        access_key = manager.create_key()
        
        assert manager.verify(access_key.id, access_key.secret) is True
        assert manager.verify(access_key.id, "wrong") is False
        
        logs = "".join(manager.get_logs())
        assert "AUTH_SUCCESS" in logs
        assert "AUTH_FAILURE" in logs
        assert "wrong" not in logs
    
    def test_stats(self, manager):
        stats = manager.get_stats()
        
        assert stats["keys"] == 0
        assert stats["exists"] is False
        assert stats["cache_size"] == 128
        
        manager.create_key()
        stats = manager.get_stats()
        
        assert stats["keys"] == 1
        assert stats["exists"] is True
    
    @pytest.fixture
    def failing_save(self, manager, monkeypatch):
        """Make every keychain save fail."""
        keychain = manager.keychain
        
        def broken_save():
            raise KeychainIOError(f"failed writing {keychain.name}: disk full", keychain.name)
        
        monkeypatch.setattr(keychain, "save", broken_save)
        return keychain
    
    def test_create_key_rolled_back_when_save_fails(self, manager, failing_save):
        """A key whose secret was never returned must not stay in memory."""
        with pytest.raises(KeychainIOError):
            manager.create_key()
        
        assert len(failing_save) == 0
        assert "KEY_SAVE_FAILED" in "".join(manager.get_logs())
    
    def test_add_key_restores_previous_hash_when_save_fails(self, manager, failing_save):
        failing_save.add("KEY1", b"h1")
        
        with pytest.raises(KeychainIOError):
            manager.add_key("KEY1", b"h2")
        
        assert failing_save.get_hash("KEY1") == b"h1"
    
    def test_remove_key_restored_when_save_fails(self, manager, failing_save):
        secret_hash = hash_secret("s3cret", rounds=4)
        failing_save.add("KEY1", secret_hash)
        
        with pytest.raises(KeychainIOError):
            manager.remove_key("KEY1")
        
        assert failing_save.get_hash("KEY1") == secret_hash
        assert failing_save.verify("KEY1", "s3cret") is True
