"""In-process serialization of ledger mutations per (profile, metal)."""

import threading


class PartitionLockRegistry:
    """Hands out one re-entrant lock per ledger partition."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[tuple[str, str], threading.RLock] = {}

    def lock_for(self, profile: str, metal: str) -> threading.RLock:
        key = (profile, metal)
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock


partition_locks = PartitionLockRegistry()
