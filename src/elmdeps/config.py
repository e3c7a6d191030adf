"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Constructor arguments
  2. Environment variables  (ELMDEPS__REGISTRY__URL=https://..., ELM_HOME=/path)
  3. elmdeps.yaml           (searched in cwd, then the platform config dir)
  4. Hardcoded defaults

The config file is optional; all fields have defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

DEFAULT_REGISTRY_URL = "https://package.elm-lang.org"
DEFAULT_COMPILER_VERSION = "0.19.1"


def _find_config_file() -> str | None:
    """Return the path of the first elmdeps.yaml found, or None."""
    candidates = [
        Path("elmdeps.yaml"),
        Path(platformdirs.user_config_dir("elmdeps", appauthor=False)) / "elmdeps.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class RegistrySettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    url: str = DEFAULT_REGISTRY_URL
    # None disables the timeout: a hung request blocks the whole resolution.
    timeout_seconds: float | None = None


class LoggingSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "text"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: ELMDEPS__REGISTRY__URL=...
        env_prefix="ELMDEPS__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    # ELM_HOME is the variable the Elm toolchain itself honours.
    elm_home: str | None = Field(
        default=None, validation_alias=AliasChoices("elm_home", "ELM_HOME")
    )
    compiler_version: str = DEFAULT_COMPILER_VERSION
    registry: RegistrySettings = RegistrySettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
