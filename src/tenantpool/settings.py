from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from tenantpool.config_sources import AppSettings
from tenantpool.connection_string import ConnectionString
from tenantpool.errors import ConfigurationError

DEFAULT_LOCATION = "uksouth"

SUBSCRIPTION_ID_KEY = "SubscriptionId"
RESOURCE_GROUP_KEY = "ResourceGroupName"
SERVER_NAME_KEY = "ServerName"
CONNECTION_STRING_KEY = "ConnectionString"
LOCATION_KEY = "Location"
MAX_DATABASES_PER_POOL_KEY = "ElasticPoolSettings:MaxDatabasesPerPool"
SKU_NAME_KEY = "ElasticPoolSettings:Sku:Name"
SKU_TIER_KEY = "ElasticPoolSettings:Sku:Tier"
SKU_CAPACITY_KEY = "ElasticPoolSettings:Sku:Capacity"
MIN_CAPACITY_KEY = "ElasticPoolSettings:PerDatabaseSettings:MinCapacity"
MAX_CAPACITY_KEY = "ElasticPoolSettings:PerDatabaseSettings:MaxCapacity"

_FIELD_KEYS: dict[tuple[str, ...], str] = {
    ("subscription_id",): SUBSCRIPTION_ID_KEY,
    ("resource_group_name",): RESOURCE_GROUP_KEY,
    ("server_name",): SERVER_NAME_KEY,
    ("admin_connection_string",): CONNECTION_STRING_KEY,
    ("location",): LOCATION_KEY,
    ("max_databases_per_pool",): MAX_DATABASES_PER_POOL_KEY,
    ("sku", "name"): SKU_NAME_KEY,
    ("sku", "tier"): SKU_TIER_KEY,
    ("sku", "capacity"): SKU_CAPACITY_KEY,
    ("per_database", "min_capacity"): MIN_CAPACITY_KEY,
    ("per_database", "max_capacity"): MAX_CAPACITY_KEY,
}


class PoolSku(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    tier: str = Field(min_length=1)
    capacity: int = Field(gt=0)


class PerDatabaseCapacity(BaseModel):
    model_config = ConfigDict(frozen=True)

    min_capacity: float = Field(ge=0.0)
    max_capacity: float = Field(gt=0.0)

    @model_validator(mode="after")
    def _check_bounds(self) -> PerDatabaseCapacity:
        if self.min_capacity > self.max_capacity:
            raise ValueError("min_capacity must be <= max_capacity")
        return self


class ProvisioningContext(BaseModel):
    model_config = ConfigDict(frozen=True)

    subscription_id: str = Field(min_length=1)
    resource_group_name: str = Field(min_length=1)
    server_name: str = Field(min_length=1)
    max_databases_per_pool: int = Field(gt=0)
    sku: PoolSku
    per_database: PerDatabaseCapacity
    admin_connection_string: str = Field(min_length=1, repr=False)
    location: str = Field(default=DEFAULT_LOCATION, min_length=1)


def resolve_settings(settings: AppSettings) -> ProvisioningContext:
    pool = settings.ElasticPoolSettings
    fields: dict[str, object] = {
        "subscription_id": _require(settings.SubscriptionId, SUBSCRIPTION_ID_KEY),
        "resource_group_name": _require(settings.ResourceGroupName, RESOURCE_GROUP_KEY),
        "server_name": _require(settings.ServerName, SERVER_NAME_KEY),
        "admin_connection_string": _require_connection_string(settings.ConnectionString),
        "max_databases_per_pool": _require(pool.MaxDatabasesPerPool, MAX_DATABASES_PER_POOL_KEY),
        "sku": {
            "name": _require(pool.Sku.Name, SKU_NAME_KEY),
            "tier": _require(pool.Sku.Tier, SKU_TIER_KEY),
            "capacity": _require(pool.Sku.Capacity, SKU_CAPACITY_KEY),
        },
        "per_database": {
            "min_capacity": _require(pool.PerDatabaseSettings.MinCapacity, MIN_CAPACITY_KEY),
            "max_capacity": _require(pool.PerDatabaseSettings.MaxCapacity, MAX_CAPACITY_KEY),
        },
    }
    if settings.Location:
        fields["location"] = settings.Location
    try:
        return ProvisioningContext.model_validate(fields)
    except ValidationError as exc:
        error = exc.errors()[0]
        key = _key_for_location(tuple(str(part) for part in error["loc"]))
        raise ConfigurationError(
            key=key,
            message=f"{key} is invalid in the configuration: {error['msg']}",
        ) from exc


def _require(value: object, key: str) -> object:
    if value is None or value == "":
        raise ConfigurationError(
            key=key,
            message=f"{key} must be provided in the configuration file",
        )
    return value


def _require_connection_string(value: str | None) -> str:
    raw = str(_require(value, CONNECTION_STRING_KEY))
    try:
        parsed = ConnectionString.parse(raw)
    except ValueError as exc:
        # The parser quotes the offending segment, which may hold the password.
        raise ConfigurationError(
            key=CONNECTION_STRING_KEY,
            message=f"{CONNECTION_STRING_KEY} is not a well-formed connection string",
        ) from exc
    if not parsed.host:
        raise ConfigurationError(
            key=CONNECTION_STRING_KEY,
            message=f"{CONNECTION_STRING_KEY} does not name a server",
        )
    return raw


def _key_for_location(location: tuple[str, ...]) -> str:
    while location:
        key = _FIELD_KEYS.get(location)
        if key is not None:
            return key
        location = location[:-1]
    # Bound checks on PerDatabaseCapacity report no field of their own.
    return MIN_CAPACITY_KEY


__all__ = [
    "DEFAULT_LOCATION",
    "PerDatabaseCapacity",
    "PoolSku",
    "ProvisioningContext",
    "resolve_settings",
]
