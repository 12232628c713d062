from __future__ import annotations

from collections.abc import AsyncIterator, Mapping, Sequence
from dataclasses import dataclass, field

from tenantpool.models import (
    DatabaseDescriptor,
    PoolRef,
    ResourceGroupRef,
    ServerRef,
    SubscriptionRef,
)
from tenantpool.ports.cloud_types import DatabaseSpec, PoolSpec


@dataclass
class FakePool:
    name: str
    databases: list[str] = field(default_factory=list)
    spec: PoolSpec | None = None

    @property
    def id(self) -> str:
        return f"/fake/elasticPools/{self.name}"


class FakeCloudResources:
    """In-memory stand-in for the Azure control plane.

    Every port call is appended to ``calls`` as ``(operation, argument)`` so
    tests can assert on ordering and on what was never asked.
    """

    def __init__(
        self,
        *,
        subscription_id: str = "sub-1",
        resource_group_name: str = "rg-tenants",
        server_name: str = "sql-tenants",
        pools: Mapping[str, int | Sequence[str]] | None = None,
        databases: Mapping[str, str | None] | None = None,
        has_subscription: bool = True,
        has_resource_group: bool = True,
        has_server: bool = True,
        lose_created_pools: bool = False,
    ) -> None:
        self.subscription_id = subscription_id
        self.resource_group_name = resource_group_name
        self.server_name = server_name
        self.has_subscription = has_subscription
        self.has_resource_group = has_resource_group
        self.has_server = has_server
        self.lose_created_pools = lose_created_pools
        self.pools: dict[str, FakePool] = {}
        self.standalone_databases: dict[str, str | None] = {}
        self.calls: list[tuple[str, str]] = []
        self.closed = False
        for pool_name, content in (pools or {}).items():
            if isinstance(content, int):
                names = [f"{pool_name}_db_{index}" for index in range(content)]
            else:
                names = list(content)
            self.pools[pool_name] = FakePool(name=pool_name, databases=names)
        for database_name, pool_name in (databases or {}).items():
            self._place_database(database_name, pool_name)

    def _place_database(self, database_name: str, pool_name: str | None) -> None:
        if pool_name is None:
            self.standalone_databases[database_name] = None
            return
        self.pools.setdefault(pool_name, FakePool(name=pool_name)).databases.append(
            database_name
        )

    def operations(self) -> list[str]:
        return [operation for operation, _ in self.calls]

    def created_pools(self) -> list[FakePool]:
        return [pool for pool in self.pools.values() if pool.spec is not None]

    async def get_subscription(self, subscription_id: str) -> SubscriptionRef | None:
        self.calls.append(("get_subscription", subscription_id))
        if not self.has_subscription or subscription_id != self.subscription_id:
            return None
        return SubscriptionRef(subscription_id=subscription_id)

    async def get_resource_group(
        self,
        subscription: SubscriptionRef,
        name: str,
    ) -> ResourceGroupRef | None:
        self.calls.append(("get_resource_group", name))
        if not self.has_resource_group or name != self.resource_group_name:
            return None
        return ResourceGroupRef(subscription_id=subscription.subscription_id, name=name)

    async def get_server(
        self,
        resource_group: ResourceGroupRef,
        name: str,
    ) -> ServerRef | None:
        self.calls.append(("get_server", name))
        if not self.has_server or name != self.server_name:
            return None
        return ServerRef(
            id=f"/fake/servers/{name}",
            name=name,
            resource_group=resource_group,
            fully_qualified_domain_name=f"{name}.database.windows.net",
        )

    async def list_pools(self, server: ServerRef) -> AsyncIterator[PoolRef]:
        self.calls.append(("list_pools", server.name))
        for pool in list(self.pools.values()):
            yield PoolRef(name=pool.name, id=pool.id)

    async def count_pool_databases(self, server: ServerRef, pool_name: str) -> int:
        self.calls.append(("count_pool_databases", pool_name))
        return len(self.pools[pool_name].databases)

    async def get_pool(self, server: ServerRef, pool_name: str) -> PoolRef | None:
        self.calls.append(("get_pool", pool_name))
        pool = self.pools.get(pool_name)
        if pool is None:
            return None
        return PoolRef(name=pool.name, id=pool.id)

    async def create_or_update_pool(
        self,
        server: ServerRef,
        pool_name: str,
        spec: PoolSpec,
    ) -> None:
        self.calls.append(("create_or_update_pool", pool_name))
        if self.lose_created_pools:
            return
        self.pools[pool_name] = FakePool(name=pool_name, spec=spec)

    def _find_database(self, database_name: str) -> DatabaseDescriptor | None:
        if database_name in self.standalone_databases:
            return DatabaseDescriptor(name=database_name, pool_id=None, exists=True)
        for pool in self.pools.values():
            if database_name in pool.databases:
                return DatabaseDescriptor(name=database_name, pool_id=pool.id, exists=True)
        return None

    async def get_database(
        self,
        server: ServerRef,
        database_name: str,
    ) -> DatabaseDescriptor | None:
        self.calls.append(("get_database", database_name))
        return self._find_database(database_name)

    async def create_or_update_database(
        self,
        server: ServerRef,
        database_name: str,
        spec: DatabaseSpec,
    ) -> DatabaseDescriptor:
        self.calls.append(("create_or_update_database", database_name))
        existing = self._find_database(database_name)
        if existing is None:
            pool = next(
                (item for item in self.pools.values() if item.id == spec.elastic_pool_id),
                None,
            )
            if pool is None:
                raise KeyError(f"Unknown elastic pool id {spec.elastic_pool_id!r}")
            pool.databases.append(database_name)
        return DatabaseDescriptor(
            name=database_name,
            pool_id=spec.elastic_pool_id,
            exists=True,
        )

    async def close(self) -> None:
        self.closed = True


class RecordingSqlExecutor:
    def __init__(self, *, fail_on_call: int | None = None) -> None:
        self.executed: list[tuple[str, str]] = []
        self._fail_on_call = fail_on_call

    async def execute(self, connection_string: str, statement: str) -> None:
        call_number = len(self.executed) + 1
        if self._fail_on_call is not None and call_number == self._fail_on_call:
            raise RuntimeError(f"simulated SQL failure on call {call_number}")
        self.executed.append((connection_string, statement))


__all__ = ["FakeCloudResources", "FakePool", "RecordingSqlExecutor"]
