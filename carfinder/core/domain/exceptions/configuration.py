"""Configuration-related exceptions for carfinder."""

from .base import CarFinderError


class ConfigurationError(CarFinderError):
    """Configuration or environment variable errors.

    Raised when required configuration is missing or invalid.
    """

    error_code = "CF_CFG_001"


class MissingAPIKeyError(ConfigurationError):
    """Required API key is not configured."""

    error_code = "CF_CFG_002"


class InvalidConfigurationError(ConfigurationError):
    """Configuration value is invalid."""

    error_code = "CF_CFG_003"
