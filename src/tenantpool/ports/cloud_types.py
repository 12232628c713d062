from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Protocol

from tenantpool.models import (
    DatabaseDescriptor,
    PoolRef,
    ResourceGroupRef,
    ServerRef,
    SubscriptionRef,
)


@dataclass(frozen=True, slots=True)
class PoolSpec:
    location: str
    sku_name: str
    sku_tier: str
    sku_capacity: int
    min_capacity: float
    max_capacity: float


@dataclass(frozen=True, slots=True)
class DatabaseSpec:
    location: str
    elastic_pool_id: str


class CloudResourcePort(Protocol):
    async def get_subscription(self, subscription_id: str) -> SubscriptionRef | None:
        ...

    async def get_resource_group(
        self,
        subscription: SubscriptionRef,
        name: str,
    ) -> ResourceGroupRef | None:
        ...

    async def get_server(
        self,
        resource_group: ResourceGroupRef,
        name: str,
    ) -> ServerRef | None:
        ...

    def list_pools(self, server: ServerRef) -> AsyncIterator[PoolRef]:
        ...

    async def count_pool_databases(self, server: ServerRef, pool_name: str) -> int:
        ...

    async def get_pool(self, server: ServerRef, pool_name: str) -> PoolRef | None:
        ...

    async def create_or_update_pool(
        self,
        server: ServerRef,
        pool_name: str,
        spec: PoolSpec,
    ) -> None:
        ...

    async def get_database(
        self,
        server: ServerRef,
        database_name: str,
    ) -> DatabaseDescriptor | None:
        ...

    async def create_or_update_database(
        self,
        server: ServerRef,
        database_name: str,
        spec: DatabaseSpec,
    ) -> DatabaseDescriptor:
        ...

    async def close(self) -> None:
        ...


__all__ = ["CloudResourcePort", "DatabaseSpec", "PoolSpec"]
