"""Keyed asyncio locks serializing mutations per role and per principal."""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Dict, Iterable, List, Tuple

from ..entities import PrincipalRef

LockKey = Tuple[int, str]

# role locks are always taken before principal locks
_ROLE_RANK = 0
_PRINCIPAL_RANK = 1


@dataclass
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    users: int = 0


class LockRegistry:
    """Hands out one asyncio.Lock per role name and per principal.

    ``hold`` acquires every requested lock in a fixed global order (roles
    first, then principals, each sorted), so callers that nest a principal
    hold inside a role hold can never deadlock against each other.

    Entries are reference counted and dropped once no caller holds or
    waits on them.
    """

    def __init__(self):
        self._locks: Dict[LockKey, _LockEntry] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def _checkout(self, key: LockKey) -> asyncio.Lock:
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _LockEntry()
        entry.users += 1
        return entry.lock

    def _checkin(self, key: LockKey) -> None:
        entry = self._locks[key]
        entry.users -= 1
        if entry.users == 0:
            del self._locks[key]

    @asynccontextmanager
    async def hold(
        self,
        roles: Iterable[str] = (),
        principals: Iterable[PrincipalRef] = ()
    ) -> AsyncIterator[None]:
        keys = sorted(
            {(_ROLE_RANK, name) for name in roles}
            | {(_PRINCIPAL_RANK, principal.key) for principal in principals}
        )

        checked_out: List[LockKey] = []
        acquired: List[asyncio.Lock] = []
        try:
            for key in keys:
                lock = self._checkout(key)
                checked_out.append(key)
                await lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            for key in checked_out:
                self._checkin(key)
