from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

from azure.core.exceptions import ResourceNotFoundError as AzureResourceNotFoundError

from tenantpool.models import (
    DatabaseDescriptor,
    PoolRef,
    ResourceGroupRef,
    ServerRef,
    SubscriptionRef,
)
from tenantpool.ports.cloud_types import DatabaseSpec, PoolSpec


class AzureSqlResourceAdapter:
    """Azure Resource Manager access for the provisioning pipeline.

    Clients may be injected; otherwise async management clients are built
    on top of ``DefaultAzureCredential``. Long-running create operations are
    awaited until the poller reports completion.
    """

    def __init__(
        self,
        subscription_id: str,
        *,
        credential: Any | None = None,
        subscription_client: Any | None = None,
        resource_client: Any | None = None,
        sql_client: Any | None = None,
    ) -> None:
        if subscription_id.strip() == "":
            raise ValueError("subscription_id must be non-empty")
        self._subscription_id = subscription_id
        self._owns_credential = False

        needs_credential = (
            subscription_client is None or resource_client is None or sql_client is None
        )
        if credential is None and needs_credential:
            from azure.identity.aio import DefaultAzureCredential

            credential = DefaultAzureCredential()
            self._owns_credential = True
        self._credential = credential

        if subscription_client is None:
            from azure.mgmt.resource.subscriptions.aio import SubscriptionClient

            subscription_client = SubscriptionClient(credential)
        if resource_client is None:
            from azure.mgmt.resource.resources.aio import ResourceManagementClient

            resource_client = ResourceManagementClient(credential, subscription_id)
        if sql_client is None:
            from azure.mgmt.sql.aio import SqlManagementClient

            sql_client = SqlManagementClient(credential, subscription_id)

        self._subscription_client = subscription_client
        self._resource_client = resource_client
        self._sql_client = sql_client

    async def get_subscription(self, subscription_id: str) -> SubscriptionRef | None:
        try:
            subscription = await self._subscription_client.subscriptions.get(subscription_id)
        except AzureResourceNotFoundError:
            return None
        return SubscriptionRef(
            subscription_id=subscription.subscription_id or subscription_id,
            display_name=subscription.display_name,
        )

    async def get_resource_group(
        self,
        subscription: SubscriptionRef,
        name: str,
    ) -> ResourceGroupRef | None:
        if subscription.subscription_id != self._subscription_id:
            raise ValueError(
                f"Adapter is bound to subscription {self._subscription_id!r}, "
                f"not {subscription.subscription_id!r}."
            )
        try:
            group = await self._resource_client.resource_groups.get(name)
        except AzureResourceNotFoundError:
            return None
        return ResourceGroupRef(
            subscription_id=subscription.subscription_id,
            name=group.name or name,
            location=group.location,
        )

    async def get_server(
        self,
        resource_group: ResourceGroupRef,
        name: str,
    ) -> ServerRef | None:
        try:
            server = await self._sql_client.servers.get(resource_group.name, name)
        except AzureResourceNotFoundError:
            return None
        return ServerRef(
            id=server.id,
            name=server.name or name,
            resource_group=resource_group,
            fully_qualified_domain_name=server.fully_qualified_domain_name,
        )

    async def list_pools(self, server: ServerRef) -> AsyncIterator[PoolRef]:
        pools = self._sql_client.elastic_pools.list_by_server(
            server.resource_group.name,
            server.name,
        )
        async for pool in pools:
            yield PoolRef(name=pool.name, id=pool.id)

    async def count_pool_databases(self, server: ServerRef, pool_name: str) -> int:
        databases = self._sql_client.databases.list_by_elastic_pool(
            server.resource_group.name,
            server.name,
            pool_name,
        )
        count = 0
        async for _ in databases:
            count += 1
        return count

    async def get_pool(self, server: ServerRef, pool_name: str) -> PoolRef | None:
        try:
            pool = await self._sql_client.elastic_pools.get(
                server.resource_group.name,
                server.name,
                pool_name,
            )
        except AzureResourceNotFoundError:
            return None
        return PoolRef(name=pool.name or pool_name, id=pool.id)

    async def create_or_update_pool(
        self,
        server: ServerRef,
        pool_name: str,
        spec: PoolSpec,
    ) -> None:
        from azure.mgmt.sql.models import ElasticPool, ElasticPoolPerDatabaseSettings, Sku

        parameters = ElasticPool(
            location=spec.location,
            sku=Sku(name=spec.sku_name, tier=spec.sku_tier, capacity=spec.sku_capacity),
            per_database_settings=ElasticPoolPerDatabaseSettings(
                min_capacity=spec.min_capacity,
                max_capacity=spec.max_capacity,
            ),
        )
        poller = await self._sql_client.elastic_pools.begin_create_or_update(
            server.resource_group.name,
            server.name,
            pool_name,
            parameters,
        )
        await poller.result()

    async def get_database(
        self,
        server: ServerRef,
        database_name: str,
    ) -> DatabaseDescriptor | None:
        try:
            database = await self._sql_client.databases.get(
                server.resource_group.name,
                server.name,
                database_name,
            )
        except AzureResourceNotFoundError:
            return None
        return DatabaseDescriptor(
            name=database.name or database_name,
            pool_id=database.elastic_pool_id,
            exists=True,
        )

    async def create_or_update_database(
        self,
        server: ServerRef,
        database_name: str,
        spec: DatabaseSpec,
    ) -> DatabaseDescriptor:
        from azure.mgmt.sql.models import Database

        poller = await self._sql_client.databases.begin_create_or_update(
            server.resource_group.name,
            server.name,
            database_name,
            Database(location=spec.location, elastic_pool_id=spec.elastic_pool_id),
        )
        database = await poller.result()
        return DatabaseDescriptor(
            name=database.name or database_name,
            pool_id=database.elastic_pool_id or spec.elastic_pool_id,
            exists=True,
        )

    async def close(self) -> None:
        await self._sql_client.close()
        await self._resource_client.close()
        await self._subscription_client.close()
        if self._owns_credential and self._credential is not None:
            await self._credential.close()


__all__ = ["AzureSqlResourceAdapter"]
