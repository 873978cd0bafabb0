"""Cache-aside acceleration around preview generation."""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from typing import Callable, Dict, Optional

from .errors import CacheStoreUnavailable
from .store import BlobStore

logger = logging.getLogger(__name__)


class CacheAccelerator:
    """Serve stored bytes when present, otherwise generate and store them.

    Stored entries never expire. Store failures never reach the caller: a
    failed ``get`` counts as a miss and a failed ``put`` is only logged.
    Concurrent misses on the same key share a single ``generate`` call.
    """

    def __init__(self, store: Optional[BlobStore]) -> None:
        self.store = store
        self._inflight: Dict[str, Future] = {}
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.store is not None

    def _lookup(self, key: str) -> Optional[bytes]:
        assert self.store is not None
        try:
            data = self.store.get(key)
        except Exception as exc:
            logger.warning("%s", CacheStoreUnavailable("get", key, str(exc)))
            return None
        if data is not None:
            logger.info("Cache hit for %s (%d bytes)", key, len(data))
        else:
            logger.info("Cache miss for %s", key)
        return data

    def _save(self, key: str, data: bytes) -> None:
        assert self.store is not None
        try:
            self.store.put(key, data)
        except Exception as exc:
            logger.error("%s", CacheStoreUnavailable("put", key, str(exc)))
            return
        logger.info("Stored %d bytes for %s", len(data), key)

    def get_or_generate(self, key: str, generate: Callable[[], bytes]) -> bytes:
        if self.store is None:
            return generate()

        cached = self._lookup(key)
        if cached is not None:
            return cached

        with self._lock:
            future = self._inflight.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._inflight[key] = future

        if not leader:
            logger.info("Waiting for in-flight generation of %s", key)
            return future.result()

        try:
            data = generate()
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(data)
        finally:
            with self._lock:
                self._inflight.pop(key, None)

        self._save(key, data)
        return data
