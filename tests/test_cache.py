import threading
import time

import pytest

from ogp_image.cache import CacheAccelerator

from conftest import MemoryStore


def test_hit_returns_stored_bytes_without_generating():
    store = MemoryStore({"K": b"cached"})

    def generate():  # pragma: no cover - behaviour under test
        raise AssertionError("generate must not run on a hit")

    assert CacheAccelerator(store).get_or_generate("K", generate) == b"cached"
    assert store.puts == []


def test_miss_generates_once_and_stores():
    store = MemoryStore()
    calls = {"value": 0}

    def generate():
        calls["value"] += 1
        return b"fresh"

    assert CacheAccelerator(store).get_or_generate("K", generate) == b"fresh"
    assert calls["value"] == 1
    assert store.puts == [("K", b"fresh")]


def test_without_store_always_generates():
    accelerator = CacheAccelerator(None)
    calls = {"value": 0}

    def generate():
        calls["value"] += 1
        return b"x"

    accelerator.get_or_generate("K", generate)
    accelerator.get_or_generate("K", generate)
    assert calls["value"] == 2
    assert not accelerator.enabled


class _BrokenStore:
    def __init__(self):
        self.put_attempts = 0

    def get(self, key):
        raise ConnectionError("store down")

    def put(self, key, data):
        self.put_attempts += 1
        raise ConnectionError("store down")


def test_store_errors_are_invisible_to_the_caller():
    store = _BrokenStore()
    result = CacheAccelerator(store).get_or_generate("K", lambda: b"bytes")
    assert result == b"bytes"
    assert store.put_attempts == 1


def test_generation_errors_propagate_and_nothing_is_stored():
    store = MemoryStore()

    def generate():
        raise ValueError("boom")

    with pytest.raises(ValueError):
        CacheAccelerator(store).get_or_generate("K", generate)
    assert store.puts == []


def test_concurrent_misses_share_one_generation():
    store = MemoryStore()
    accelerator = CacheAccelerator(store)
    started = threading.Event()
    release = threading.Event()
    calls = {"value": 0}

    def generate():
        calls["value"] += 1
        started.set()
        release.wait(timeout=5)
        return b"shared"

    results = []
    first = threading.Thread(target=lambda: results.append(accelerator.get_or_generate("K", generate)))
    first.start()
    started.wait(timeout=5)

    second = threading.Thread(target=lambda: results.append(accelerator.get_or_generate("K", generate)))
    second.start()
    time.sleep(0.05)
    release.set()
    first.join(timeout=5)
    second.join(timeout=5)

    assert results == [b"shared", b"shared"]
    assert calls["value"] == 1
