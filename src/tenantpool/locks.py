from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Protocol


class TenantLockPort(Protocol):
    def hold(self, tenant_key: str) -> AbstractAsyncContextManager[None]:
        ...


class InProcessTenantLocks:
    """Serializes provisioning runs per tenant inside one event loop.

    Runs in other processes are not excluded; inject a distributed
    implementation of ``TenantLockPort`` for that.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, tenant_key: str) -> AsyncIterator[None]:
        lock = self._locks.get(tenant_key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[tenant_key] = lock
        self._holders[tenant_key] = self._holders.get(tenant_key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._holders[tenant_key] - 1
            if remaining == 0:
                del self._holders[tenant_key]
                del self._locks[tenant_key]
            else:
                self._holders[tenant_key] = remaining

    def is_held(self, tenant_key: str) -> bool:
        lock = self._locks.get(tenant_key)
        return lock is not None and lock.locked()


class NoopTenantLocks:
    @asynccontextmanager
    async def hold(self, tenant_key: str) -> AsyncIterator[None]:
        yield


__all__ = ["InProcessTenantLocks", "NoopTenantLocks", "TenantLockPort"]
