"""Settings module for runtime configuration."""

from __future__ import annotations

import os

DEFAULT_PARSE_CACHE_SIZE = 1024
DEFAULT_REGEX_CACHE_SIZE = 512


def _is_truthy(value: str | None) -> bool:
    """Check if a string value is truthy.

    Args:
        value: String value to check

    Returns:
        True if value is "true", "1", or "yes" (case-insensitive), False otherwise
    """
    if value is None:
        return False
    return value.lower() in ("true", "1", "yes")


def _int_from_env(name: str, default: int) -> int:
    """Read a positive integer from the environment, falling back to the default."""
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as e:
        msg = f"{name} must be an integer, got {raw!r}"
        raise ValueError(msg) from e
    if value <= 0:
        msg = f"{name} must be positive, got {value}"
        raise ValueError(msg)
    return value


class Settings:
    """Simple settings class for runtime configuration."""

    def __init__(self) -> None:
        """Initialize settings from environment variables."""
        self._enable_parse_cache = _is_truthy(os.environ.get("CARDSEARCH_ENABLE_PARSE_CACHE", "true"))
        self._parse_cache_size = _int_from_env("CARDSEARCH_PARSE_CACHE_SIZE", DEFAULT_PARSE_CACHE_SIZE)
        self._regex_cache_size = _int_from_env("CARDSEARCH_REGEX_CACHE_SIZE", DEFAULT_REGEX_CACHE_SIZE)
        self._log_level = os.environ.get("CARDSEARCH_LOG_LEVEL", "INFO").upper()

    @property
    def enable_parse_cache(self) -> bool:
        """Check if parse results are memoised per query string."""
        return self._enable_parse_cache

    @enable_parse_cache.setter
    def enable_parse_cache(self, value: bool) -> None:
        """Set parse caching enabled state."""
        self._enable_parse_cache = value

    @property
    def parse_cache_size(self) -> int:
        """Maximum number of cached query ASTs."""
        return self._parse_cache_size

    @property
    def regex_cache_size(self) -> int:
        """Maximum number of cached compiled patterns."""
        return self._regex_cache_size

    @property
    def log_level(self) -> str:
        """Log level name used by the command line entrypoint."""
        return self._log_level

    @log_level.setter
    def log_level(self, value: str) -> None:
        """Set the log level name."""
        self._log_level = value.upper()


# Global settings instance
settings = Settings()
