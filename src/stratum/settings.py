from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from stratum.common import AppDirectories, AppInfo, AppPaths, ConfigFileNames
from stratum.constants import ENV_PREFIX
from stratum.engine.options import CacheOptions, InterpolationOptions, ResolutionOptions, ValidationOptions


class EngineDefaults(BaseModel):
    cache_ttl: float = Field(default=300.0, ge=0)
    cache_max_size: int = Field(default=100, ge=1)
    loader_timeout: float = Field(default=30.0, gt=0)
    env_prefix: str = ENV_PREFIX
    allow_undefined: bool = False


class Settings(BaseSettings):
    app: AppInfo = AppInfo()
    paths: AppPaths = AppPaths()
    engine: EngineDefaults = EngineDefaults()

    model_config = SettingsConfigDict(
        env_prefix="STRATUM_",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        nested_model_default_partial_update=True,
    )

    def to_app_directories(self) -> AppDirectories:
        return AppDirectories(
            app_name=self.paths.config_dir_name,
            project_marker=self.paths.project_subdir_name,
        )

    def to_config_file_names(self) -> ConfigFileNames:
        return ConfigFileNames(
            global_file=self.paths.global_config_filename,
            project_file=self.paths.project_config_filename,
            user_file=self.paths.user_config_filename,
        )

    def to_resolution_options(
        self,
        *,
        strict: bool = False,
        coerce: bool = False,
        strip_unknown: bool = False,
    ) -> ResolutionOptions:
        return ResolutionOptions(
            interpolation=InterpolationOptions(allow_undefined=self.engine.allow_undefined),
            validation=ValidationOptions(strict=strict, coerce=coerce, strip_unknown=strip_unknown),
            cache=CacheOptions(ttl=self.engine.cache_ttl, max_size=self.engine.cache_max_size),
            loader_timeout=self.engine.loader_timeout,
        )


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


# Private singleton instance
_settings: Settings | None = None

# Convenience access - pre-initialized singleton
settings = get_settings()


__all__ = [
    "AppInfo",
    "AppPaths",
    "EngineDefaults",
    "Settings",
    "get_settings",
    "settings",
]
