"""Per-product exclusive locks for stock mutations.

Both lock types expose ``hold(product_id)``, a context manager that blocks
until the product's lock is free or the bounded wait expires, in which case
``StockLockTimeoutError`` is raised. Locks for different products never
contend with each other.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional

from redlock import Redlock

from app.core.config import settings
from app.core.exceptions import StockLockTimeoutError

logger = logging.getLogger(__name__)


class LocalStockLock:
    """In-process lock table keyed by product id.

    Serializes mutations of one product among the threads of a single
    process. Entries are dropped once nobody holds or waits for them.
    """

    def __init__(self, timeout: Optional[float] = 5.0):
        self.timeout = timeout
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.Lock] = {}
        self._users: Dict[int, int] = {}

    @contextmanager
    def hold(self, product_id: int) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(product_id, threading.Lock())
            self._users[product_id] = self._users.get(product_id, 0) + 1

        wait = -1 if self.timeout is None or self.timeout < 0 else self.timeout
        acquired = lock.acquire(timeout=wait)
        try:
            if not acquired:
                logger.warning(f"Timed out waiting for stock lock of product {product_id}")
                raise StockLockTimeoutError(product_id, self.timeout)
            yield
        finally:
            if acquired:
                lock.release()
            with self._guard:
                self._users[product_id] -= 1
                if self._users[product_id] == 0:
                    del self._users[product_id]
                    del self._locks[product_id]

    def is_locked(self, product_id: int) -> bool:
        with self._guard:
            lock = self._locks.get(product_id)
        return lock is not None and lock.locked()


class RedlockStockLock:
    """Distributed lock on ``lock:product:{id}`` using Redlock.

    The wait is bounded by the Redlock retry count and delay; the TTL
    releases the lock if the holder dies mid-operation.
    """

    def __init__(self, rlock: Redlock, ttl_ms: int = 10000):
        self.rlock = rlock
        self.ttl_ms = ttl_ms

    @staticmethod
    def key(product_id: int) -> str:
        return f"lock:product:{product_id}"

    @contextmanager
    def hold(self, product_id: int) -> Iterator[None]:
        lock = self.rlock.lock(self.key(product_id), self.ttl_ms)
        if not lock:
            logger.warning(f"Could not acquire Redlock for product {product_id}")
            raise StockLockTimeoutError(product_id)
        try:
            yield
        finally:
            self.rlock.unlock(lock)


# Shared by every service instance in this process
local_stock_lock = LocalStockLock(timeout=settings.STOCK_LOCK_TIMEOUT)
