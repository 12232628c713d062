from tenantpool._provisioning.credentials import issue_credential
from tenantpool._provisioning.database import create_database, find_database
from tenantpool._provisioning.locator import locate_server
from tenantpool._provisioning.pool_selection import (
    create_pool,
    find_pool_with_capacity,
    list_pool_usage,
    select_pool,
)

__all__ = [
    "create_database",
    "create_pool",
    "find_database",
    "find_pool_with_capacity",
    "issue_credential",
    "list_pool_usage",
    "locate_server",
    "select_pool",
]
