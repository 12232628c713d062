from __future__ import annotations

import asyncio

from tenantpool import TenantDatabaseProvisioner, app_settings_from_mapping
from tenantpool.logs import configure_logging
from tenantpool.testing import FakeCloudResources, RecordingSqlExecutor

SETTINGS: dict[str, object] = {
    "SubscriptionId": "sub-demo",
    "ResourceGroupName": "rg-tenants",
    "ServerName": "sql-tenants",
    "ConnectionString": (
        "Server=tcp:sql-tenants.database.windows.net,1433;Initial Catalog=master;"
        "User ID=sqladmin;Password=not-a-real-password;"
    ),
    "ElasticPoolSettings": {
        "MaxDatabasesPerPool": 2,
        "Sku": {"Name": "StandardPool", "Tier": "Standard", "Capacity": 50},
        "PerDatabaseSettings": {"MinCapacity": 0, "MaxCapacity": 10},
    },
}


async def main() -> None:
    configure_logging("INFO")
    cloud = FakeCloudResources(
        subscription_id="sub-demo",
        pools={"ElasticPool-full": 2, "ElasticPool-room": 1},
    )
    sql = RecordingSqlExecutor()
    provisioner = TenantDatabaseProvisioner.from_config(
        app_settings_from_mapping(SETTINGS),
        cloud=cloud,
        sql=sql,
    )
    try:
        first = await provisioner.provision_database_for_tenant(10, "Mister Suits")
        second = await provisioner.provision_database_for_tenant(11, "Acme Corp")
        again = await provisioner.provision_database_for_tenant(10, "Mister Suits")

        print("First pool:", first.pool.name if first.pool else None)
        print("Second pool:", second.pool.name if second.pool else None)
        print("Re-run skipped:", again.skipped)
        print("SQL statements:", len(sql.executed))

        if first.pool is None or first.pool.name != "ElasticPool-room":
            raise AssertionError("Expected the first pool with room to be selected.")
        if second.pool is None or not second.pool.created:
            raise AssertionError("Expected a new pool once every pool is full.")
        if not again.skipped:
            raise AssertionError("Expected the re-run to skip an existing database.")
    finally:
        await provisioner.close()


if __name__ == "__main__":
    asyncio.run(main())
