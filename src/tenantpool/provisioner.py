from __future__ import annotations

import logging

from tenantpool._provisioning import (
    create_database,
    find_database,
    issue_credential,
    locate_server,
    select_pool,
)
from tenantpool.config_sources import AppSettings
from tenantpool.locks import InProcessTenantLocks, TenantLockPort
from tenantpool.models import ProvisioningResult, derive_database_name
from tenantpool.ports.cloud_types import CloudResourcePort
from tenantpool.ports.sql import SqlExecutorPort
from tenantpool.settings import ProvisioningContext, resolve_settings

logger = logging.getLogger(__name__)


class TenantDatabaseProvisioner:
    """Places one database per tenant into the first elastic pool with room.

    Stages run strictly in order: resolve the server, check whether the
    tenant database already exists, select or create a pool, create the
    database, then issue a login scoped to it. An existing database ends
    the run without touching pools or issuing a credential.

    Pool capacity is read and then acted on without a lock, so runs for
    different tenants may still both pick the last free slot of a pool.
    """

    def __init__(
        self,
        context: ProvisioningContext,
        *,
        cloud: CloudResourcePort,
        sql: SqlExecutorPort,
        locks: TenantLockPort | None = None,
    ) -> None:
        self._context = context
        self._cloud = cloud
        self._sql = sql
        self._locks = locks if locks is not None else InProcessTenantLocks()

    @classmethod
    def from_config(
        cls,
        settings: AppSettings,
        *,
        cloud: CloudResourcePort,
        sql: SqlExecutorPort,
        locks: TenantLockPort | None = None,
    ) -> TenantDatabaseProvisioner:
        return cls(resolve_settings(settings), cloud=cloud, sql=sql, locks=locks)

    @property
    def context(self) -> ProvisioningContext:
        return self._context

    async def provision_database_for_tenant(
        self,
        tenant_id: int,
        tenant_name: str,
    ) -> ProvisioningResult:
        database_name = derive_database_name(tenant_id, tenant_name)
        async with self._locks.hold(str(tenant_id)):
            return await self._provision(database_name)

    async def _provision(self, database_name: str) -> ProvisioningResult:
        server = await locate_server(self._cloud, self._context)

        existing = await find_database(self._cloud, server, database_name)
        if existing.exists:
            logger.info("Database '%s' already exists.", database_name)
            return ProvisioningResult(database=existing)

        pool = await select_pool(self._cloud, server, self._context)
        database = await create_database(
            self._cloud,
            server,
            database_name,
            pool,
            self._context,
        )
        credential = await issue_credential(
            self._sql,
            self._context.admin_connection_string,
            database.name,
        )
        logger.info(
            "Database '%s' created successfully in pool '%s' with login %s",
            database.name,
            pool.name,
            credential.login_name,
        )
        return ProvisioningResult(database=database, pool=pool, credential=credential)

    async def close(self) -> None:
        await self._cloud.close()


__all__ = ["TenantDatabaseProvisioner"]
