"""Tests for the verification cache and the reader/writer lock."""

import threading
import time

from access_keychain.cache import MIN_CACHE_SIZE, VerificationCache
from access_keychain.locks import ReadWriteLock


class TestVerificationCache:
    """Tests for the VerificationCache class."""
    
    def test_minimum_size(self):
        """Capacity never drops below the floor."""
        assert VerificationCache(0).size == MIN_CACHE_SIZE
        assert VerificationCache(3).size == MIN_CACHE_SIZE
        assert VerificationCache(200).size == 200
    
    def test_get_put(self):
        cache = VerificationCache()
        
        assert cache.get(b"k") is None
        cache.put(b"k", "ID", False)
        
        assert cache.get(b"k") is False
        assert cache.hits == 1
        assert cache.misses == 1
    
    def test_evicts_least_recently_used(self):
        """The least recently used entry goes first."""
        cache = VerificationCache(8)
        for i in range(8):
            cache.put(bytes([i]), f"ID{i}", True)
        
        cache.get(bytes([0]))
        cache.put(b"new", "NEW", True)
        
        assert len(cache) == 8
        assert bytes([0]) in cache
        assert bytes([1]) not in cache
        assert b"new" in cache
    
    def test_invalidate_by_id(self):
        """All results for one id are dropped together."""
        cache = VerificationCache()
        cache.put(b"a", "ID1", True)
        cache.put(b"b", "ID1", False)
        cache.put(b"c", "ID2", True)
        
        assert cache.invalidate("ID1") == 2
        
        assert b"a" not in cache
        assert b"b" not in cache
        assert b"c" in cache
        assert cache.invalidate("ID1") == 0
    
    def test_eviction_updates_id_index(self):
        """Evicted entries are not counted by a later invalidation."""
        cache = VerificationCache(8)
        cache.put(b"old", "OLD", True)
        for i in range(8):
            cache.put(bytes([i]), "OTHER", True)
        
        assert cache.invalidate("OLD") == 0
    
    def test_clear(self):
        cache = VerificationCache()
        cache.put(b"a", "ID1", True)
        cache.clear()
        
        assert len(cache) == 0
        assert cache.invalidate("ID1") == 0
    
    def test_concurrent_access(self):
        """Concurrent readers and writers keep the cache consistent."""
        cache = VerificationCache(16)
        
        def worker(n):
            for i in range(200):
                key = f"{n}-{i % 20}".encode()
                cache.put(key, f"ID{n}", True)
                cache.get(key)
        
        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        
        assert len(cache) <= 16


class TestReadWriteLock:
    """Tests for the ReadWriteLock class."""
    
    def test_readers_share(self):
        """Several readers may hold the lock together."""
        lock = ReadWriteLock()
        inside = []
        barrier = threading.Barrier(3, timeout=5)
        
        def reader():
            with lock.read():
                inside.append(1)
                barrier.wait()
        
        threads = [threading.Thread(target=reader) for _ in range(3)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        
        assert len(inside) == 3
    
    def test_writer_excludes_readers(self):
        """A reader waits until the writer releases."""
        lock = ReadWriteLock()
        events = []
        
        lock.acquire_write()
        
        def reader():
            with lock.read():
                events.append("read")
        
        t = threading.Thread(target=reader)
        t.start()
        time.sleep(0.05)
        events.append("write-done")
        lock.release_write()
        t.join(timeout=5)
        
        assert events == ["write-done", "read"]
    
    def test_writer_waits_for_readers(self):
        """A writer waits until current readers leave."""
        lock = ReadWriteLock()
        events = []
        
        lock.acquire_read()
        
        def writer():
            with lock.write():
                events.append("write")
        
        t = threading.Thread(target=writer)
        t.start()
        time.sleep(0.05)
        events.append("read-done")
        lock.release_read()
        t.join(timeout=5)
        
        assert events == ["read-done", "write"]
