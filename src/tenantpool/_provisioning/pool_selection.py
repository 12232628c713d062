from __future__ import annotations

import logging
from uuid import uuid4

from tenantpool.errors import PoolCreationError
from tenantpool.models import PoolDescriptor, ServerRef
from tenantpool.ports.cloud_types import CloudResourcePort, PoolSpec
from tenantpool.settings import ProvisioningContext

logger = logging.getLogger(__name__)

POOL_NAME_PREFIX = "ElasticPool-"


def new_pool_name() -> str:
    return f"{POOL_NAME_PREFIX}{uuid4()}"


def pool_spec_for(context: ProvisioningContext) -> PoolSpec:
    return PoolSpec(
        location=context.location,
        sku_name=context.sku.name,
        sku_tier=context.sku.tier,
        sku_capacity=context.sku.capacity,
        min_capacity=context.per_database.min_capacity,
        max_capacity=context.per_database.max_capacity,
    )


async def find_pool_with_capacity(
    cloud: CloudResourcePort,
    server: ServerRef,
    *,
    max_databases_per_pool: int,
) -> PoolDescriptor | None:
    # First fit in listing order; later pools are never counted.
    async for pool in cloud.list_pools(server):
        database_count = await cloud.count_pool_databases(server, pool.name)
        if database_count < max_databases_per_pool:
            return PoolDescriptor(name=pool.name, id=pool.id, database_count=database_count)
        logger.debug(
            "Elastic pool %r is full (%d/%d databases)",
            pool.name,
            database_count,
            max_databases_per_pool,
        )
    return None


async def list_pool_usage(
    cloud: CloudResourcePort,
    server: ServerRef,
) -> list[PoolDescriptor]:
    usage: list[PoolDescriptor] = []
    async for pool in cloud.list_pools(server):
        database_count = await cloud.count_pool_databases(server, pool.name)
        usage.append(PoolDescriptor(name=pool.name, id=pool.id, database_count=database_count))
    return usage


async def create_pool(
    cloud: CloudResourcePort,
    server: ServerRef,
    context: ProvisioningContext,
) -> PoolDescriptor:
    pool_name = new_pool_name()
    logger.info("Creating a new elastic pool: %s", pool_name)
    await cloud.create_or_update_pool(server, pool_name, pool_spec_for(context))
    logger.info("Elastic pool '%s' created successfully.", pool_name)

    created = await cloud.get_pool(server, pool_name)
    if created is None:
        raise PoolCreationError(pool_name=pool_name)
    return PoolDescriptor(name=created.name, id=created.id, database_count=0, created=True)


async def select_pool(
    cloud: CloudResourcePort,
    server: ServerRef,
    context: ProvisioningContext,
) -> PoolDescriptor:
    existing = await find_pool_with_capacity(
        cloud,
        server,
        max_databases_per_pool=context.max_databases_per_pool,
    )
    if existing is not None:
        return existing
    return await create_pool(cloud, server, context)


__all__ = [
    "POOL_NAME_PREFIX",
    "create_pool",
    "find_pool_with_capacity",
    "list_pool_usage",
    "new_pool_name",
    "pool_spec_for",
    "select_pool",
]
