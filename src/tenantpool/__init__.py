from tenantpool.config_sources import AppSettings, app_settings_from_mapping, load_app_settings
from tenantpool.errors import (
    ConfigurationError,
    OrphanedLoginError,
    PoolCreationError,
    ProvisioningError,
    ResourceNotFoundError,
)
from tenantpool.locks import InProcessTenantLocks, NoopTenantLocks, TenantLockPort
from tenantpool.models import (
    DatabaseDescriptor,
    PoolDescriptor,
    ProvisioningResult,
    TenantCredential,
    derive_database_name,
)
from tenantpool.provisioner import TenantDatabaseProvisioner
from tenantpool.settings import ProvisioningContext, resolve_settings

__all__ = [
    "AppSettings",
    "ConfigurationError",
    "DatabaseDescriptor",
    "InProcessTenantLocks",
    "NoopTenantLocks",
    "OrphanedLoginError",
    "PoolCreationError",
    "PoolDescriptor",
    "ProvisioningContext",
    "ProvisioningError",
    "ProvisioningResult",
    "ResourceNotFoundError",
    "TenantCredential",
    "TenantDatabaseProvisioner",
    "TenantLockPort",
    "app_settings_from_mapping",
    "derive_database_name",
    "load_app_settings",
    "resolve_settings",
]
