from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Sequence

from tenantpool._provisioning import list_pool_usage, locate_server
from tenantpool.config_sources import DEFAULT_CONFIG_FILES, AppSettings, load_app_settings
from tenantpool.logs import configure_logging
from tenantpool.ports.cloud_types import CloudResourcePort
from tenantpool.ports.sql import AioodbcSqlExecutor, SqlExecutorPort
from tenantpool.provisioner import TenantDatabaseProvisioner
from tenantpool.settings import ProvisioningContext, resolve_settings


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    try:
        args = parser.parse_args(list(argv) if argv is not None else None)
        configure_logging(args.log_level, json_output=bool(args.json_logs))
        return asyncio.run(_run_command(args))
    except Exception as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1


async def _run_command(args: argparse.Namespace) -> int:
    command = getattr(args, "command", None)
    # Settings are resolved before any cloud client exists.
    context = resolve_settings(_app_settings(args))
    cloud = _open_cloud(context)
    try:
        if command == "provision":
            return await _run_provision(args, context=context, cloud=cloud)
        if command == "pools":
            return await _run_pools(args, context=context, cloud=cloud)
        raise ValueError(f"Unsupported command: {command!r}")
    finally:
        await cloud.close()


def _app_settings(args: argparse.Namespace) -> AppSettings:
    if args.config:
        return load_app_settings(args.config, optional=False)
    return load_app_settings(DEFAULT_CONFIG_FILES)


def _open_cloud(context: ProvisioningContext) -> CloudResourcePort:
    from tenantpool.ports.cloud_adapter import AzureSqlResourceAdapter

    return AzureSqlResourceAdapter(context.subscription_id)


def _open_sql() -> SqlExecutorPort:
    return AioodbcSqlExecutor()


async def _run_provision(
    args: argparse.Namespace,
    *,
    context: ProvisioningContext,
    cloud: CloudResourcePort,
) -> int:
    provisioner = TenantDatabaseProvisioner(context, cloud=cloud, sql=_open_sql())
    result = await provisioner.provision_database_for_tenant(args.tenant_id, args.tenant_name)
    credential = result.credential
    if args.json_output:
        print(
            json.dumps(
                {
                    "database": result.database.name,
                    "skipped": result.skipped,
                    "pool": result.pool.name if result.pool is not None else None,
                    "pool_created": result.pool.created if result.pool is not None else False,
                    "login": credential.login_name if credential is not None else None,
                    "connection_string": (
                        credential.connection_string if credential is not None else None
                    ),
                },
                ensure_ascii=False,
                sort_keys=True,
            )
        )
        return 0
    if credential is None:
        print(f"Database '{result.database.name}' already exists.")
        return 0
    print(
        f"Database '{result.database.name}' created successfully. "
        f"Connection string: {credential.connection_string}"
    )
    return 0


async def _run_pools(
    args: argparse.Namespace,
    *,
    context: ProvisioningContext,
    cloud: CloudResourcePort,
) -> int:
    server = await locate_server(cloud, context)
    usage = await list_pool_usage(cloud, server)
    ceiling = context.max_databases_per_pool
    rows = [
        {
            "name": pool.name,
            "databases": pool.database_count,
            "has_capacity": pool.database_count < ceiling,
        }
        for pool in usage
    ]
    if args.json_output:
        print(
            json.dumps(
                {"server": server.name, "ceiling": ceiling, "pools": rows},
                ensure_ascii=False,
                sort_keys=True,
            )
        )
        return 0
    for row in rows:
        marker = "available" if row["has_capacity"] else "full"
        print(f"{row['name']}\t{row['databases']}/{ceiling}\t{marker}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tenantpool",
        description="Provision tenant databases into Azure SQL elastic pools.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(command_parser: argparse.ArgumentParser) -> None:
        command_parser.add_argument(
            "--config",
            action="append",
            default=None,
            help=(
                "JSON settings file; repeat to layer files. Defaults to "
                "appsettings.json and appsettings.development.json when present."
            ),
        )
        command_parser.add_argument(
            "--json",
            dest="json_output",
            action="store_true",
            help="Print machine-readable JSON output.",
        )
        command_parser.add_argument(
            "--log-level",
            default="INFO",
            choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        )
        command_parser.add_argument(
            "--json-logs",
            action="store_true",
            help="Emit log records as JSON lines on stderr.",
        )

    provision_parser = subparsers.add_parser(
        "provision",
        help="Create a tenant database and its login.",
    )
    provision_parser.add_argument("--tenant-id", type=int, required=True)
    provision_parser.add_argument("--tenant-name", required=True)
    add_common(provision_parser)

    pools_parser = subparsers.add_parser(
        "pools",
        help="List elastic pools with their database counts.",
    )
    add_common(pools_parser)
    return parser


if __name__ == "__main__":
    raise SystemExit(main())
