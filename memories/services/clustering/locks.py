"""Per-user serialization of clustering runs."""
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict


class UserLockRegistry:
    """Hands out one asyncio lock per user.

    Runs for the same user queue behind each other; runs for different users
    proceed independently. A user's lock is forgotten once no run holds or
    waits for it.
    """

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._locks.get(user_id)
        if lock is None:
            lock = self._locks[user_id] = asyncio.Lock()
        return lock

    def is_locked(self, user_id: str) -> bool:
        lock = self._locks.get(user_id)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, user_id: str) -> AsyncGenerator[None, None]:
        """Hold the user's lock for the duration of the block."""
        lock = self.lock_for(user_id)
        self._users[user_id] = self._users.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[user_id] -= 1
            if self._users[user_id] == 0:
                del self._users[user_id]
                if self._locks.get(user_id) is lock:
                    del self._locks[user_id]
