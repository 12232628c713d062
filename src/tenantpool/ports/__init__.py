from tenantpool.ports.cloud_types import CloudResourcePort, DatabaseSpec, PoolSpec
from tenantpool.ports.sql import AioodbcSqlExecutor, SqlExecutorPort

__all__ = [
    "AioodbcSqlExecutor",
    "CloudResourcePort",
    "DatabaseSpec",
    "PoolSpec",
    "SqlExecutorPort",
]
