from __future__ import annotations

import pytest

from tenantpool._provisioning.locator import locate_server
from tenantpool._provisioning.pool_selection import (
    POOL_NAME_PREFIX,
    find_pool_with_capacity,
    list_pool_usage,
    select_pool,
)
from tenantpool.errors import PoolCreationError, ResourceNotFoundError
from tenantpool.models import ServerRef
from tenantpool.settings import ProvisioningContext
from tenantpool.testing import FakeCloudResources


def _context(*, ceiling: int = 5) -> ProvisioningContext:
    return ProvisioningContext.model_validate(
        {
            "subscription_id": "sub-1",
            "resource_group_name": "rg-tenants",
            "server_name": "sql-tenants",
            "max_databases_per_pool": ceiling,
            "sku": {"name": "StandardPool", "tier": "Standard", "capacity": 50},
            "per_database": {"min_capacity": 0, "max_capacity": 10},
            "admin_connection_string": "Server=tcp:sql-tenants,1433;Initial Catalog=master;",
        }
    )


async def _server(cloud: FakeCloudResources) -> ServerRef:
    return await locate_server(cloud, _context())


@pytest.mark.asyncio
async def test_pool_under_ceiling_is_selected_without_creating_a_new_one() -> None:
    cloud = FakeCloudResources(pools={"pool-a": 3})
    server = await _server(cloud)

    pool = await select_pool(cloud, server, _context(ceiling=5))

    assert pool.name == "pool-a"
    assert pool.database_count == 3
    assert pool.created is False
    assert "create_or_update_pool" not in cloud.operations()


@pytest.mark.asyncio
async def test_full_pool_triggers_creation_with_configured_sku() -> None:
    cloud = FakeCloudResources(pools={"pool-a": 5})
    server = await _server(cloud)

    pool = await select_pool(cloud, server, _context(ceiling=5))

    assert pool.created is True
    assert pool.database_count == 0
    assert pool.name.startswith(POOL_NAME_PREFIX)
    created = cloud.created_pools()
    assert [item.name for item in created] == [pool.name]
    spec = created[0].spec
    assert spec is not None
    assert (spec.sku_name, spec.sku_tier, spec.sku_capacity) == ("StandardPool", "Standard", 50)
    assert (spec.min_capacity, spec.max_capacity) == (0.0, 10.0)
    assert spec.location == "uksouth"


@pytest.mark.asyncio
async def test_no_pools_at_all_creates_one() -> None:
    cloud = FakeCloudResources()
    server = await _server(cloud)

    pool = await select_pool(cloud, server, _context())

    assert pool.created is True
    assert cloud.operations()[-2:] == ["create_or_update_pool", "get_pool"]


@pytest.mark.asyncio
async def test_first_fit_stops_enumeration_at_first_match() -> None:
    cloud = FakeCloudResources(pools={"pool-a": 5, "pool-b": 1, "pool-c": 0})
    server = await _server(cloud)

    pool = await select_pool(cloud, server, _context(ceiling=5))

    assert pool.name == "pool-b"
    counted = [arg for op, arg in cloud.calls if op == "count_pool_databases"]
    assert counted == ["pool-a", "pool-b"]


@pytest.mark.asyncio
async def test_first_fit_prefers_listing_order_over_emptiest_pool() -> None:
    cloud = FakeCloudResources(pools={"pool-a": 4, "pool-b": 0})
    server = await _server(cloud)

    pool = await select_pool(cloud, server, _context(ceiling=5))

    assert pool.name == "pool-a"


@pytest.mark.parametrize(
    ("counts", "ceiling", "expected"),
    [
        ({"p1": 2}, 2, None),
        ({"p1": 2, "p2": 1}, 2, "p2"),
        ({"p1": 0}, 1, "p1"),
        ({"p1": 9, "p2": 10, "p3": 3}, 10, "p1"),
        ({"p1": 10, "p2": 10}, 10, None),
    ],
)
@pytest.mark.asyncio
async def test_find_pool_with_capacity_matches_first_pool_below_ceiling(
    counts: dict[str, int],
    ceiling: int,
    expected: str | None,
) -> None:
    cloud = FakeCloudResources(pools=counts)
    server = await _server(cloud)

    found = await find_pool_with_capacity(cloud, server, max_databases_per_pool=ceiling)

    assert (found.name if found is not None else None) == expected


@pytest.mark.asyncio
async def test_pool_missing_after_creation_is_a_distinct_failure() -> None:
    cloud = FakeCloudResources(pools={"pool-a": 5}, lose_created_pools=True)
    server = await _server(cloud)

    with pytest.raises(PoolCreationError) as excinfo:
        await select_pool(cloud, server, _context(ceiling=5))

    assert not isinstance(excinfo.value, ResourceNotFoundError)
    assert excinfo.value.pool_name.startswith(POOL_NAME_PREFIX)


@pytest.mark.asyncio
async def test_list_pool_usage_counts_every_pool() -> None:
    cloud = FakeCloudResources(pools={"pool-a": 5, "pool-b": 2})
    server = await _server(cloud)

    usage = await list_pool_usage(cloud, server)

    assert [(pool.name, pool.database_count) for pool in usage] == [
        ("pool-a", 5),
        ("pool-b", 2),
    ]
