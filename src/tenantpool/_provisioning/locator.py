from __future__ import annotations

import logging

from tenantpool.errors import ResourceNotFoundError
from tenantpool.models import ServerRef
from tenantpool.ports.cloud_types import CloudResourcePort
from tenantpool.settings import ProvisioningContext

logger = logging.getLogger(__name__)


async def locate_server(
    cloud: CloudResourcePort,
    context: ProvisioningContext,
) -> ServerRef:
    subscription = await cloud.get_subscription(context.subscription_id)
    if subscription is None:
        raise ResourceNotFoundError(kind="Subscription", name=context.subscription_id)

    resource_group = await cloud.get_resource_group(subscription, context.resource_group_name)
    if resource_group is None:
        raise ResourceNotFoundError(kind="Resource group", name=context.resource_group_name)

    server = await cloud.get_server(resource_group, context.server_name)
    if server is None:
        raise ResourceNotFoundError(kind="SQL server", name=context.server_name)

    logger.debug(
        "Resolved SQL server %r in resource group %r", server.name, resource_group.name
    )
    return server


__all__ = ["locate_server"]
