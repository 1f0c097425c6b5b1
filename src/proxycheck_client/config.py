"""
Configuration dataclasses for the proxycheck client.

Configuration objects are immutable and validated on construction. The
``with_*`` helpers return a new configured instance, so differently
configured clients can coexist in one process.
"""

import json
import os
from dataclasses import asdict, dataclass, field, replace
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .enums import ErrorCode, LogLevel
from .exceptions import ValidationError


DEFAULT_API_BASE = "https://proxycheck.io/v2/"
DEFAULT_DASHBOARD_BASE = "https://proxycheck.io/dashboard/"

OUTPUT_FORMATS = ("json", "text", "both")


def _invalid(message: str, **details) -> ValidationError:
    return ValidationError(
        code=ErrorCode.INVALID_CONFIG.value,
        message=message,
        details=details,
    )


@dataclass(frozen=True)
class CacheConfig:
    """Response cache settings."""

    enabled: bool = True
    expiration_seconds: int = 600
    prefix: str = "proxycheck_"

    def __post_init__(self) -> None:
        if self.expiration_seconds <= 0:
            raise _invalid(
                "Cache expiration time must be greater than 0",
                expiration_seconds=self.expiration_seconds,
            )


@dataclass(frozen=True)
class LoggingConfig:
    """
    Logging configuration.

    A client given no logger builds one from this configuration when
    ``enabled`` is set. ``max_entries`` bounds the entries kept in memory.
    """

    enabled: bool = False
    level: str = "info"
    output_format: str = "text"  # 'json', 'text', 'both'
    max_entries: int = 1000

    def __post_init__(self) -> None:
        if self.max_entries < 0:
            raise _invalid("max_entries must not be negative", max_entries=self.max_entries)
        if self.level not in {level.value for level in LogLevel}:
            raise _invalid(f"Invalid log level: {self.level}", level=self.level)
        if self.output_format not in OUTPUT_FORMATS:
            raise _invalid(
                f"Invalid output_format: {self.output_format}",
                output_format=self.output_format,
            )


@dataclass(frozen=True)
class ClientConfig:
    """Main client configuration combining all sub-configurations."""

    api_key: str = ""
    api_base: str = DEFAULT_API_BASE
    dashboard_base: str = DEFAULT_DASHBOARD_BASE
    timeout_seconds: float = 15.0
    cache: CacheConfig = field(default_factory=CacheConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            raise _invalid(
                "Timeout must be greater than 0",
                timeout_seconds=self.timeout_seconds,
            )

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    def with_api_key(self, api_key: str) -> "ClientConfig":
        return replace(self, api_key=api_key)

    def with_cache(
        self,
        enabled: Optional[bool] = None,
        expiration_seconds: Optional[int] = None,
        prefix: Optional[str] = None,
    ) -> "ClientConfig":
        """Return a copy with the given cache settings changed."""
        cache = CacheConfig(
            enabled=self.cache.enabled if enabled is None else enabled,
            expiration_seconds=(
                self.cache.expiration_seconds
                if expiration_seconds is None
                else expiration_seconds
            ),
            prefix=self.cache.prefix if prefix is None else prefix,
        )
        return replace(self, cache=cache)

    def with_timeout(self, timeout_seconds: float) -> "ClientConfig":
        return replace(self, timeout_seconds=timeout_seconds)

    def with_logging(self, level: str, output_format: Optional[str] = None) -> "ClientConfig":
        logging_config = replace(
            self.logging,
            enabled=True,
            level=level,
            output_format=output_format or self.logging.output_format,
        )
        return replace(self, logging=logging_config)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_number(name: str, default, cast):
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return cast(value)
    except ValueError:
        raise _invalid(f"Environment variable {name} is not a number", value=value)


def load_config_from_env(env_file: Optional[Path] = None) -> ClientConfig:
    """
    Build a configuration from PROXYCHECK_* environment variables.

    Args:
        env_file: Optional .env file loaded before reading the environment.
                  Variables already set in the environment take precedence.

    Returns:
        ClientConfig built from the environment

    Raises:
        ValidationError: If a value is malformed or out of range
    """
    load_dotenv(dotenv_path=env_file)

    cache = CacheConfig(
        enabled=_env_bool("PROXYCHECK_CACHE_ENABLED", True),
        expiration_seconds=_env_number("PROXYCHECK_CACHE_EXPIRATION", 600, int),
        prefix=os.getenv("PROXYCHECK_CACHE_PREFIX", "proxycheck_"),
    )
    level = os.getenv("PROXYCHECK_LOG_LEVEL") or ""
    output_format = os.getenv("PROXYCHECK_LOG_FORMAT") or ""
    logging_config = LoggingConfig(
        enabled=_env_bool("PROXYCHECK_LOG_ENABLED", bool(level.strip() or output_format.strip())),
        level=level.strip().lower() or "info",
        output_format=output_format.strip().lower() or "text",
        max_entries=_env_number("PROXYCHECK_LOG_MAX_ENTRIES", 1000, int),
    )
    return ClientConfig(
        api_key=(os.getenv("PROXYCHECK_API_KEY") or "").strip(),
        timeout_seconds=_env_number("PROXYCHECK_TIMEOUT", 15.0, float),
        cache=cache,
        logging=logging_config,
    )


def load_config_from_file(config_path: Path) -> Optional[ClientConfig]:
    """
    Load configuration from a JSON file.

    Args:
        config_path: Path to the configuration file

    Returns:
        ClientConfig if the file exists, None otherwise

    Raises:
        ValidationError: If the file is not valid JSON or holds invalid values
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        return None
    except json.JSONDecodeError as e:
        raise _invalid(f"Failed to parse config file: {e}", path=str(config_path))

    try:
        cache_data = data.get("cache", {})
        logging_data = data.get("logging", {})
        return ClientConfig(
            api_key=data.get("api_key", ""),
            api_base=data.get("api_base", DEFAULT_API_BASE),
            dashboard_base=data.get("dashboard_base", DEFAULT_DASHBOARD_BASE),
            timeout_seconds=data.get("timeout_seconds", 15.0),
            cache=CacheConfig(
                enabled=cache_data.get("enabled", True),
                expiration_seconds=cache_data.get("expiration_seconds", 600),
                prefix=cache_data.get("prefix", "proxycheck_"),
            ),
            logging=LoggingConfig(
                enabled=logging_data.get("enabled", False),
                level=logging_data.get("level", "info"),
                output_format=logging_data.get("output_format", "text"),
                max_entries=logging_data.get("max_entries", 1000),
            ),
        )
    except (AttributeError, TypeError) as e:
        raise _invalid(f"Invalid config structure: {e}", path=str(config_path))


def save_config_to_file(config: ClientConfig, config_path: Path) -> None:
    """
    Save configuration to a JSON file.

    The API key is written as-is; protect the file accordingly.
    """
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        json.dump(asdict(config), f, indent=2, sort_keys=True)
