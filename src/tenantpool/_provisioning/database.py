from __future__ import annotations

import logging

from tenantpool.models import DatabaseDescriptor, PoolDescriptor, ServerRef
from tenantpool.ports.cloud_types import CloudResourcePort, DatabaseSpec
from tenantpool.settings import ProvisioningContext

logger = logging.getLogger(__name__)


async def find_database(
    cloud: CloudResourcePort,
    server: ServerRef,
    database_name: str,
) -> DatabaseDescriptor:
    existing = await cloud.get_database(server, database_name)
    if existing is None:
        return DatabaseDescriptor(name=database_name, pool_id=None, exists=False)
    return existing


async def create_database(
    cloud: CloudResourcePort,
    server: ServerRef,
    database_name: str,
    pool: PoolDescriptor,
    context: ProvisioningContext,
) -> DatabaseDescriptor:
    logger.info("Creating database '%s' in pool '%s'", database_name, pool.name)
    return await cloud.create_or_update_database(
        server,
        database_name,
        DatabaseSpec(location=context.location, elastic_pool_id=pool.id),
    )


__all__ = ["create_database", "find_database"]
