from __future__ import annotations

import functools
import logging
import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from simhash_core import __version__
from simhash_core.core.features import FeatureType
from simhash_core.core.hashing import HashMethod

ENV_VAR = "SIMHASH_ENV"
# Fixed SipHash key for reproducible test runs; never use it for real data.
TESTING_SIPHASH_KEY = "000102030405060708090a0b0c0d0e0f"


class HashingConfig(BaseModel):
    """How texts are cut into features and hashed."""

    method: HashMethod = HashMethod.XXHASH
    feature_type: FeatureType = FeatureType.BYTES
    window_size: PositiveInt = 2
    siphash_key: str | None = Field(
        None,
        description=(
            "SipHash-2-4 key as 32 hex digits. When unset a random key is drawn "
            "once per process, so SipHash fingerprints are only comparable "
            "within one process."
        ),
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("method", mode="before")
    @classmethod
    def _coerce_method(cls, value: Any) -> Any:
        return HashMethod.coerce(value) if isinstance(value, str) else value

    @field_validator("feature_type", mode="before")
    @classmethod
    def _coerce_feature_type(cls, value: Any) -> Any:
        return FeatureType.coerce(value) if isinstance(value, str) else value

    @field_validator("siphash_key")
    @classmethod
    def _validate_key(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip().lower()
        if len(value) != 32:
            raise ValueError("siphash_key must be exactly 32 hex digits")
        try:
            bytes.fromhex(value)
        except ValueError as exc:
            raise ValueError("siphash_key must be hexadecimal") from exc
        return value


class IndexConfig(BaseModel):
    """Approximate lookup defaults."""

    max_diff: int = Field(3, ge=0, le=64)

    model_config = ConfigDict(frozen=True)


class MonitoringConfig(BaseModel):
    """Logging configuration."""

    log_level: str = "INFO"

    model_config = ConfigDict(frozen=True)

    @field_validator("log_level")
    @classmethod
    def _validate_level(cls, value: str) -> str:
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {value!r}")
        return level


class SimHashSettings(BaseSettings):
    """Aggregate all configuration sections.

    Values are read from ``SIMHASH_*`` environment variables, with ``__``
    separating a section from its field, e.g. ``SIMHASH_INDEX__MAX_DIFF=5``.
    Environment values take precedence over constructor arguments, so the
    profile constructors below only supply defaults.
    """

    version: str = __version__
    profile: str = "development"
    hashing: HashingConfig = HashingConfig()
    index: IndexConfig = IndexConfig()
    monitoring: MonitoringConfig = MonitoringConfig()

    model_config = SettingsConfigDict(
        env_prefix="SIMHASH_",
        env_nested_delimiter="__",
        extra="ignore",
        frozen=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return env_settings, init_settings, dotenv_settings, file_secret_settings

    @classmethod
    def for_testing(cls) -> SimHashSettings:
        return cls(
            profile="testing",
            hashing={"siphash_key": TESTING_SIPHASH_KEY},
            monitoring={"log_level": "DEBUG"},
        )

    @classmethod
    def for_production(cls) -> SimHashSettings:
        return cls(profile="production", monitoring={"log_level": "WARNING"})

    @classmethod
    def for_development(cls) -> SimHashSettings:
        return cls(profile="development", monitoring={"log_level": "DEBUG"})

    def get_config_summary(self) -> dict[str, Any]:
        data = self.model_dump(mode="json")
        data["hashing"]["siphash_key"] = "set" if self.hashing.siphash_key else None
        return data


def configure_logging(settings: SimHashSettings | None = None) -> None:
    settings = settings or get_settings()
    level = getattr(logging, settings.monitoring.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logging.getLogger("simhash_core").setLevel(level)


@functools.lru_cache(maxsize=None)
def get_settings(env: str | None = None) -> SimHashSettings:
    """Return the settings profile for *env* (default: ``$SIMHASH_ENV``)."""
    env = env or os.getenv(ENV_VAR, "development")
    if env == "production":
        return SimHashSettings.for_production()
    if env == "testing":
        return SimHashSettings.for_testing()
    if env == "development":
        return SimHashSettings.for_development()
    return SimHashSettings()


__all__ = [
    "ENV_VAR",
    "HashingConfig",
    "IndexConfig",
    "MonitoringConfig",
    "SimHashSettings",
    "configure_logging",
    "get_settings",
]
