from __future__ import annotations

import asyncio

import pytest

from tenantpool.config_sources import app_settings_from_mapping
from tenantpool.errors import ConfigurationError, OrphanedLoginError, ResourceNotFoundError
from tenantpool.locks import NoopTenantLocks
from tenantpool.models import DatabaseDescriptor, ServerRef
from tenantpool.provisioner import TenantDatabaseProvisioner
from tenantpool.settings import ProvisioningContext
from tenantpool.testing import FakeCloudResources, RecordingSqlExecutor

LOCATOR_CALLS = ["get_subscription", "get_resource_group", "get_server"]


def _context(*, ceiling: int = 5) -> ProvisioningContext:
    return ProvisioningContext.model_validate(
        {
            "subscription_id": "sub-1",
            "resource_group_name": "rg-tenants",
            "server_name": "sql-tenants",
            "max_databases_per_pool": ceiling,
            "sku": {"name": "StandardPool", "tier": "Standard", "capacity": 50},
            "per_database": {"min_capacity": 0, "max_capacity": 10},
            "admin_connection_string": (
                "Server=tcp:sql-tenants.database.windows.net,1433;Initial Catalog=master;"
                "User ID=sqladmin;Password=admin-secret;"
            ),
        }
    )


class SuspendingCloudResources(FakeCloudResources):
    async def get_database(
        self,
        server: ServerRef,
        database_name: str,
    ) -> DatabaseDescriptor | None:
        result = await super().get_database(server, database_name)
        await asyncio.sleep(0)
        return result


@pytest.mark.asyncio
async def test_provisions_database_in_pool_with_capacity() -> None:
    cloud = FakeCloudResources(pools={"pool-a": 3})
    sql = RecordingSqlExecutor()
    provisioner = TenantDatabaseProvisioner(_context(ceiling=5), cloud=cloud, sql=sql)

    result = await provisioner.provision_database_for_tenant(10, "Mister Suits")

    assert result.skipped is False
    assert result.database.name == "DB_10_Mister_Suits"
    assert result.pool is not None and result.pool.name == "pool-a"
    assert result.pool.created is False
    assert "DB_10_Mister_Suits" in cloud.pools["pool-a"].databases
    assert result.credential is not None
    assert result.credential.database_name == "DB_10_Mister_Suits"
    assert len(sql.executed) == 2
    assert cloud.operations() == LOCATOR_CALLS + [
        "get_database",
        "list_pools",
        "count_pool_databases",
        "create_or_update_database",
    ]


@pytest.mark.asyncio
async def test_full_pool_leads_to_new_pool_hosting_the_database() -> None:
    cloud = FakeCloudResources(pools={"pool-a": 5})
    sql = RecordingSqlExecutor()
    provisioner = TenantDatabaseProvisioner(_context(ceiling=5), cloud=cloud, sql=sql)

    result = await provisioner.provision_database_for_tenant(11, "Acme")

    assert result.pool is not None and result.pool.created is True
    created = cloud.created_pools()
    assert len(created) == 1
    assert created[0].databases == ["DB_11_Acme"]
    assert result.database.pool_id == created[0].id
    assert len(cloud.pools["pool-a"].databases) == 5


@pytest.mark.asyncio
async def test_existing_database_short_circuits_without_pool_work_or_credentials() -> None:
    cloud = FakeCloudResources(
        pools={"pool-a": 5},
        databases={"DB_10_Mister_Suits": "pool-a"},
    )
    sql = RecordingSqlExecutor()
    provisioner = TenantDatabaseProvisioner(_context(ceiling=5), cloud=cloud, sql=sql)

    result = await provisioner.provision_database_for_tenant(10, "  Mister Suits ")

    assert result.skipped is True
    assert result.credential is None
    assert result.pool is None
    assert result.database.exists is True
    assert cloud.operations() == LOCATOR_CALLS + ["get_database"]
    assert cloud.created_pools() == []
    assert sql.executed == []


@pytest.mark.asyncio
async def test_rerun_after_success_is_idempotent() -> None:
    cloud = FakeCloudResources(pools={"pool-a": 0})
    sql = RecordingSqlExecutor()
    provisioner = TenantDatabaseProvisioner(_context(), cloud=cloud, sql=sql)

    first = await provisioner.provision_database_for_tenant(5, "Repeat Co")
    second = await provisioner.provision_database_for_tenant(5, "Repeat Co")

    assert first.credential is not None
    assert second.skipped is True
    assert cloud.operations().count("create_or_update_database") == 1
    assert len(sql.executed) == 2


def test_missing_configuration_aborts_before_any_cloud_call() -> None:
    cloud = FakeCloudResources()
    settings = app_settings_from_mapping(
        {
            "SubscriptionId": "sub-1",
            "ResourceGroupName": "rg-tenants",
            "ServerName": "sql-tenants",
            "ElasticPoolSettings": {
                "MaxDatabasesPerPool": 5,
                "Sku": {"Name": "StandardPool", "Tier": "Standard", "Capacity": 50},
                "PerDatabaseSettings": {"MinCapacity": 0, "MaxCapacity": 10},
            },
        }
    )

    with pytest.raises(ConfigurationError) as excinfo:
        TenantDatabaseProvisioner.from_config(settings, cloud=cloud, sql=RecordingSqlExecutor())

    assert excinfo.value.key == "ConnectionString"
    assert cloud.calls == []


def test_connection_string_without_server_aborts_before_any_cloud_call() -> None:
    cloud = FakeCloudResources(pools={"pool-full": 5})
    settings = app_settings_from_mapping(
        {
            "SubscriptionId": "sub-1",
            "ResourceGroupName": "rg-tenants",
            "ServerName": "sql-tenants",
            "ConnectionString": (
                "Driver={ODBC Driver 18 for SQL Server};Database=master;Uid=a;Pwd=b;"
            ),
            "ElasticPoolSettings": {
                "MaxDatabasesPerPool": 5,
                "Sku": {"Name": "StandardPool", "Tier": "Standard", "Capacity": 50},
                "PerDatabaseSettings": {"MinCapacity": 0, "MaxCapacity": 10},
            },
        }
    )

    with pytest.raises(ConfigurationError) as excinfo:
        TenantDatabaseProvisioner.from_config(settings, cloud=cloud, sql=RecordingSqlExecutor())

    assert excinfo.value.key == "ConnectionString"
    assert cloud.calls == []
    assert cloud.created_pools() == []


@pytest.mark.asyncio
async def test_missing_server_aborts_before_database_work() -> None:
    cloud = FakeCloudResources(has_server=False)
    sql = RecordingSqlExecutor()
    provisioner = TenantDatabaseProvisioner(_context(), cloud=cloud, sql=sql)

    with pytest.raises(ResourceNotFoundError):
        await provisioner.provision_database_for_tenant(10, "Mister Suits")

    assert cloud.operations() == LOCATOR_CALLS
    assert sql.executed == []


@pytest.mark.asyncio
async def test_orphaned_login_surfaces_after_database_creation() -> None:
    cloud = FakeCloudResources(pools={"pool-a": 0})
    sql = RecordingSqlExecutor(fail_on_call=2)
    provisioner = TenantDatabaseProvisioner(_context(), cloud=cloud, sql=sql)

    with pytest.raises(OrphanedLoginError):
        await provisioner.provision_database_for_tenant(12, "Half Done")

    assert "DB_12_Half_Done" in cloud.pools["pool-a"].databases


@pytest.mark.asyncio
async def test_concurrent_runs_for_one_tenant_are_serialized() -> None:
    cloud = SuspendingCloudResources(pools={"pool-a": 0})
    sql = RecordingSqlExecutor()
    provisioner = TenantDatabaseProvisioner(_context(), cloud=cloud, sql=sql)

    results = await asyncio.gather(
        provisioner.provision_database_for_tenant(20, "Racer"),
        provisioner.provision_database_for_tenant(20, "Racer"),
    )

    assert sorted(result.skipped for result in results) == [False, True]
    assert cloud.operations().count("create_or_update_database") == 1
    assert len(sql.executed) == 2


@pytest.mark.asyncio
async def test_without_locks_concurrent_runs_both_attempt_creation() -> None:
    cloud = SuspendingCloudResources(pools={"pool-a": 0})
    sql = RecordingSqlExecutor()
    provisioner = TenantDatabaseProvisioner(
        _context(),
        cloud=cloud,
        sql=sql,
        locks=NoopTenantLocks(),
    )

    await asyncio.gather(
        provisioner.provision_database_for_tenant(21, "Racer"),
        provisioner.provision_database_for_tenant(21, "Racer"),
    )

    assert cloud.operations().count("create_or_update_database") == 2


@pytest.mark.asyncio
async def test_close_releases_cloud_adapter() -> None:
    cloud = FakeCloudResources()
    provisioner = TenantDatabaseProvisioner(_context(), cloud=cloud, sql=RecordingSqlExecutor())

    await provisioner.close()

    assert cloud.closed is True
