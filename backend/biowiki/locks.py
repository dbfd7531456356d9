"""
Biowiki — Store Locking
========================

What:  Hands out asyncio locks keyed by the part of the store an operation
       touches.
Why:   A page write is two files (page.json, then versions/<hash>.json).
       Two writers on the same page must not interleave, but writers on
       unrelated pages have no reason to wait for each other.
How:   Lock scopes:
           ()             the web collection (list / create webs)
           (web,)         one web (list pages)
           (web, page)    one page (every page, version and attachment op)
       WikiService acquires them explicitly:

           async with self.locks.hold(web_name, page_name):
               ...

Concurrency Note:
    asyncio locks are only valid inside one event loop, which matches
    uvicorn's single-process worker. For multiple worker processes a
    file-based lock would be needed; every worker would still see a
    consistent store because page.json is replaced atomically and versions
    are write-once.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Tuple


class StoreLocks:
    """
    Lazily created asyncio.Lock per scope key.

    A scope's lock lives only while some hold() is using or waiting for it,
    so requests for webs and pages that never existed leave nothing behind.
    """

    def __init__(self) -> None:
        self._locks: Dict[Tuple[str, ...], asyncio.Lock] = {}
        # Number of hold() calls currently holding or waiting, per scope
        self._holders: Dict[Tuple[str, ...], int] = {}

    def lock_for(self, *scope: str) -> asyncio.Lock:
        # No await between lookup and insert, so this cannot race
        lock = self._locks.get(scope)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[scope] = lock
        return lock

    @asynccontextmanager
    async def hold(self, *scope: str) -> AsyncIterator[None]:
        lock = self.lock_for(*scope)
        self._holders[scope] = self._holders.get(scope, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[scope] -= 1
            if not self._holders[scope]:
                del self._holders[scope]
                self._locks.pop(scope, None)

    def __len__(self) -> int:
        return len(self._locks)
