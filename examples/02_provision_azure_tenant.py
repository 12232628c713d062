from __future__ import annotations

import asyncio
import sys

from tenantpool import load_app_settings, resolve_settings
from tenantpool.logs import configure_logging
from tenantpool.ports import AioodbcSqlExecutor
from tenantpool.ports.cloud_adapter import AzureSqlResourceAdapter
from tenantpool.provisioner import TenantDatabaseProvisioner


async def main(tenant_id: int, tenant_name: str) -> None:
    configure_logging("INFO")
    context = resolve_settings(load_app_settings())
    provisioner = TenantDatabaseProvisioner(
        context,
        cloud=AzureSqlResourceAdapter(context.subscription_id),
        sql=AioodbcSqlExecutor(),
    )
    try:
        result = await provisioner.provision_database_for_tenant(tenant_id, tenant_name)
    finally:
        await provisioner.close()

    if result.credential is None:
        print(f"Database '{result.database.name}' already exists.")
        return
    print(f"Connection string: {result.credential.connection_string}")


if __name__ == "__main__":
    if len(sys.argv) != 3:
        raise SystemExit("usage: 02_provision_azure_tenant.py TENANT_ID TENANT_NAME")
    asyncio.run(main(int(sys.argv[1]), sys.argv[2]))
