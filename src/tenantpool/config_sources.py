from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    SettingsError,
)

from tenantpool.errors import ConfigurationError

KEY_SEPARATOR = ":"
ENV_PREFIX = "TENANTPOOL_"
DEFAULT_CONFIG_FILES: tuple[str, ...] = ("appsettings.json", "appsettings.development.json")

_SECTION_CONFIG = ConfigDict(str_strip_whitespace=True, coerce_numbers_to_str=True)


class SkuSection(BaseModel):
    model_config = _SECTION_CONFIG

    Name: str | None = None
    Tier: str | None = None
    Capacity: int | None = None


class PerDatabaseSection(BaseModel):
    model_config = _SECTION_CONFIG

    MinCapacity: float | None = None
    MaxCapacity: float | None = None


class ElasticPoolSection(BaseModel):
    model_config = _SECTION_CONFIG

    MaxDatabasesPerPool: int | None = None
    Sku: SkuSection = Field(default_factory=SkuSection)
    PerDatabaseSettings: PerDatabaseSection = Field(default_factory=PerDatabaseSection)


class AppSettings(BaseSettings):
    """The appsettings document.

    Field names follow the JSON keys. JSON files are layered in order, later
    files overriding earlier ones section by section, and ``TENANTPOOL_``
    environment variables override every file. Nested keys use ``__`` in
    variable names, e.g. ``TENANTPOOL_ElasticPoolSettings__Sku__Name``.
    Presence of required values is checked by ``resolve_settings``.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
    )

    SubscriptionId: str | None = None
    ResourceGroupName: str | None = None
    ServerName: str | None = None
    Location: str | None = None
    ConnectionString: str | None = None
    ElasticPoolSettings: ElasticPoolSection = Field(default_factory=ElasticPoolSection)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        files = settings_cls.model_config.get("json_file") or ()
        # Earlier sources win, so the last file comes first.
        json_layers = tuple(
            JsonConfigSettingsSource(settings_cls, json_file=path) for path in reversed(files)
        )
        return (init_settings, env_settings, *json_layers)


def load_app_settings(
    paths: Sequence[str | Path] = DEFAULT_CONFIG_FILES,
    *,
    optional: bool = True,
) -> AppSettings:
    files = tuple(Path(raw_path).expanduser() for raw_path in paths)
    if not optional:
        for path in files:
            if not path.is_file():
                raise ConfigurationError(
                    key=str(path),
                    message=f"Configuration file {str(path)!r} does not exist.",
                )

    class LayeredAppSettings(AppSettings):
        model_config = SettingsConfigDict(json_file=files)

    return _validated(LayeredAppSettings, files=files)


def app_settings_from_mapping(values: Mapping[str, object]) -> AppSettings:
    """Validates an in-memory appsettings document without reading files or the environment."""
    return _validated(lambda: AppSettings.model_validate(dict(values)))


def _validated(build: Callable[[], AppSettings], *, files: Sequence[Path] = ()) -> AppSettings:
    try:
        return build()
    except ValidationError as exc:
        error = exc.errors()[0]
        key = KEY_SEPARATOR.join(str(part) for part in error["loc"])
        raise ConfigurationError(
            key=key,
            message=f"{key} is invalid in the configuration: {error['msg']}",
        ) from exc
    except SettingsError as exc:
        raise ConfigurationError(key=ENV_PREFIX, message=str(exc)) from exc
    except ValueError as exc:
        # json.JSONDecodeError from one of the layered files.
        names = ", ".join(repr(str(path)) for path in files)
        raise ConfigurationError(
            key=names,
            message=f"Configuration files {names} are not valid JSON: {exc}",
        ) from exc


__all__ = [
    "AppSettings",
    "DEFAULT_CONFIG_FILES",
    "ENV_PREFIX",
    "ElasticPoolSection",
    "KEY_SEPARATOR",
    "PerDatabaseSection",
    "SkuSection",
    "app_settings_from_mapping",
    "load_app_settings",
]
