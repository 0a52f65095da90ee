"""
Per-session serialization.

Keyed asyncio locks so that at most one turn per conversation id runs at a
time inside this process. Entries are dropped once no task holds or waits
on them.

Dependencies: asyncio
System role: Per-session mutual exclusion for provisioning and log writes
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class _LockEntry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


class SessionLockRegistry:
    """Registry of per-conversation locks."""

    def __init__(self) -> None:
        self._entries: dict[str, _LockEntry] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """
        Hold the lock for a conversation id for the duration of the block.

        Args:
            key: Conversation id
        """
        entry = self._entries.get(key)
        if entry is None:
            entry = _LockEntry()
            self._entries[key] = entry
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0 and self._entries.get(key) is entry:
                del self._entries[key]

    def is_held(self, key: str) -> bool:
        """Return True if some task currently holds the lock for key."""
        entry = self._entries.get(key)
        return entry is not None and entry.lock.locked()

    def __len__(self) -> int:
        return len(self._entries)
