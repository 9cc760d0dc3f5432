from __future__ import annotations

from dataclasses import replace
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .config import CONFIG_FILE, AppConfig, load_config

ENV_PREFIX = "PANDOC_EXPORT_"


class Settings(BaseSettings):
    """Runtime overrides sourced from environment variables."""

    model_config = SettingsConfigDict(env_prefix=ENV_PREFIX, env_file=".env", extra="ignore")

    config_path: Path = CONFIG_FILE
    vault_root: Path | None = None
    pandoc: str | None = None
    enable_local_api: bool | None = None


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""

    return Settings()


def apply_settings(config: AppConfig, settings: Settings) -> AppConfig:
    if settings.vault_root is not None:
        config = replace(config, vault=replace(config.vault, root=settings.vault_root))
    if settings.pandoc:
        config = replace(config, export=replace(config.export, pandoc=settings.pandoc))
    if settings.enable_local_api is not None:
        config = replace(
            config,
            runtime=replace(config.runtime, enable_local_api=settings.enable_local_api),
        )
    return config


def resolve_config(path: Path | None = None, settings: Settings | None = None) -> AppConfig:
    """Load ``config.toml`` and apply environment overrides on top."""

    settings = settings or get_settings()
    return apply_settings(load_config(path or settings.config_path), settings)


__all__ = ["ENV_PREFIX", "Settings", "apply_settings", "get_settings", "resolve_config"]
