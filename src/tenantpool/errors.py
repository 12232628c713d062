from __future__ import annotations


class ProvisioningError(RuntimeError):
    pass


class ConfigurationError(ProvisioningError):
    def __init__(self, *, key: str, message: str) -> None:
        super().__init__(message)
        self.key = key


class ResourceNotFoundError(ProvisioningError):
    def __init__(self, *, kind: str, name: str) -> None:
        super().__init__(f"{kind} {name!r} not found.")
        self.kind = kind
        self.name = name


class PoolCreationError(ProvisioningError):
    def __init__(self, *, pool_name: str) -> None:
        super().__init__(
            f"Failed to create elastic pool {pool_name!r}: creation completed but the "
            "pool could not be retrieved afterwards."
        )
        self.pool_name = pool_name


class OrphanedLoginError(ProvisioningError):
    def __init__(self, *, login_name: str, database_name: str) -> None:
        super().__init__(
            f"Login {login_name!r} was created but its user on database "
            f"{database_name!r} could not be created. Drop the login manually."
        )
        self.login_name = login_name
        self.database_name = database_name


__all__ = [
    "ConfigurationError",
    "OrphanedLoginError",
    "PoolCreationError",
    "ProvisioningError",
    "ResourceNotFoundError",
]
