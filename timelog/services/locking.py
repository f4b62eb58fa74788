"""
Per-owner mutual exclusion.

All mutations of one owner's entries run their read-check-write sequence
under the owner's lock, so two concurrent starts cannot both observe
"no active entry". Different owners never wait for each other.

Locks are held weakly: once no operation holds or waits on an owner's lock
it is dropped, so the registry does not grow with every owner ever seen.
"""

import asyncio
import weakref


class OwnerLocks:
    """Lazily created asyncio.Lock per owner id"""

    def __init__(self):
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = weakref.WeakValueDictionary()

    def for_owner(self, owner_id: int) -> asyncio.Lock:
        lock = self._locks.get(owner_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[owner_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)
