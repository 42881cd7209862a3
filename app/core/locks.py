"""Per-room mutual exclusion for status changes within one process.

Row locks (``SELECT ... FOR UPDATE``) serialize across processes on
PostgreSQL; this registry covers the in-process case and backends without
row locking.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID


class RoomLockRegistry:
    """Re-entrant (per task) asyncio locks keyed by room id."""

    def __init__(self) -> None:
        self._locks: dict[UUID, asyncio.Lock] = {}
        self._owners: dict[UUID, asyncio.Task] = {}
        self._waiters: dict[UUID, int] = {}

    @asynccontextmanager
    async def hold(self, room_id: UUID) -> AsyncIterator[None]:
        """Hold the lock for ``room_id``; nested holds by the same task pass through."""
        task = asyncio.current_task()
        if task is not None and self._owners.get(room_id) is task:
            yield
            return

        lock = self._locks.setdefault(room_id, asyncio.Lock())
        self._waiters[room_id] = self._waiters.get(room_id, 0) + 1
        try:
            async with lock:
                self._owners[room_id] = task
                try:
                    yield
                finally:
                    self._owners.pop(room_id, None)
        finally:
            self._waiters[room_id] -= 1
            if self._waiters[room_id] == 0:
                del self._waiters[room_id]
                self._locks.pop(room_id, None)

    def is_held(self, room_id: UUID) -> bool:
        lock = self._locks.get(room_id)
        return lock is not None and lock.locked()


room_locks = RoomLockRegistry()
