from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class SubscriptionRef:
    subscription_id: str
    display_name: str | None = None


@dataclass(frozen=True, slots=True)
class ResourceGroupRef:
    subscription_id: str
    name: str
    location: str | None = None


@dataclass(frozen=True, slots=True)
class ServerRef:
    id: str
    name: str
    resource_group: ResourceGroupRef
    fully_qualified_domain_name: str | None = None


@dataclass(frozen=True, slots=True)
class PoolRef:
    name: str
    id: str


@dataclass(frozen=True, slots=True)
class PoolDescriptor:
    name: str
    id: str
    database_count: int
    created: bool = False


@dataclass(frozen=True, slots=True)
class DatabaseDescriptor:
    name: str
    pool_id: str | None
    exists: bool


@dataclass(frozen=True, slots=True)
class TenantCredential:
    login_name: str
    password: str = field(repr=False)
    database_name: str
    connection_string: str = field(repr=False)


@dataclass(frozen=True, slots=True)
class ProvisioningResult:
    database: DatabaseDescriptor
    pool: PoolDescriptor | None = None
    credential: TenantCredential | None = None

    @property
    def skipped(self) -> bool:
        return self.credential is None


def derive_database_name(tenant_id: int, tenant_name: str) -> str:
    normalized = tenant_name.strip().replace(" ", "_")
    if normalized == "":
        raise ValueError("Tenant name must contain at least one non-whitespace character.")
    return f"DB_{tenant_id}_{normalized}"


__all__ = [
    "DatabaseDescriptor",
    "PoolDescriptor",
    "PoolRef",
    "ProvisioningResult",
    "ResourceGroupRef",
    "ServerRef",
    "SubscriptionRef",
    "TenantCredential",
    "derive_database_name",
]
