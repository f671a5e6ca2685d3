"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (TERMANSWER__SEARCH__ENGINE=bing)
  2. termanswer.yaml        (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional; every field has a default.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_CACHE_DIR = platformdirs.user_cache_dir("termanswer")
_DEFAULT_CACHE_PATH = str(Path(_DEFAULT_CACHE_DIR) / "answers")


def _find_config_file() -> str | None:
    """Return the path of the first termanswer.yaml found, or None."""
    candidates = [
        Path("termanswer.yaml"),
        Path(platformdirs.user_config_dir("termanswer")) / "termanswer.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class CacheSettings(BaseModel):
    path: str = _DEFAULT_CACHE_PATH
    max_entries: int = 300
    freshness_days: int = 15


class FetcherSettings(BaseModel):
    timeout_seconds: float = 30.0
    # False ignores HTTP(S)_PROXY and friends from the environment
    trust_env: bool = True


class EngineDomains(BaseModel):
    bing: str = "www.bing.com"
    google: str = "www.google.com"
    duckduckgo: str = "duckduckgo.com"


class SearchSettings(BaseModel):
    engine: Literal["bing", "google", "duckduckgo"] = "duckduckgo"
    domains: EngineDomains = EngineDomains()


class CrawlerSettings(BaseModel):
    channel_capacity: int = 10


class ColorizeSettings(BaseModel):
    theme: str = "monokai"


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    format: Literal["json", "text"] = "text"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: TERMANSWER__CACHE__MAX_ENTRIES=100
        env_prefix="TERMANSWER__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    cache: CacheSettings = CacheSettings()
    fetcher: FetcherSettings = FetcherSettings()
    search: SearchSettings = SearchSettings()
    crawler: CrawlerSettings = CrawlerSettings()
    colorize: ColorizeSettings = ColorizeSettings()
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
