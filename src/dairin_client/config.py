"""
Configuration management for the Dairin Python client

Settings can be given directly, read from ``DAIRIN_*`` environment variables,
or loaded from a JSON file.
"""

import os
import json
from typing import Any, Dict, Mapping, Optional, Union
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlparse

from .exceptions import ConfigurationError, ValidationError

DEFAULT_BASE_URL = "https://dair.in"
DEFAULT_ENV_PREFIX = "DAIRIN_"

_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass
class ClientConfig:
    """Configuration for the Dairin server connection."""
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 30.0
    verify_ssl: bool = True
    retry_attempts: int = 3
    retry_backoff_factor: float = 0.3

    def __post_init__(self):
        """Validate server configuration."""
        if not self.base_url:
            raise ValidationError("Server base_url cannot be empty")

        # Paths are appended to the base URL, so drop any trailing slash
        self.base_url = self.base_url.rstrip('/')

        parsed = urlparse(self.base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValidationError(f"Invalid server URL format: {self.base_url}")

        if self.timeout <= 0:
            raise ValidationError("Timeout must be positive")

        if self.retry_attempts < 0:
            raise ValidationError("Retry attempts must be non-negative")


@dataclass
class DairinConfig:
    """Credentials plus connection settings."""
    api_key: str
    secret_key: str = field(repr=False)
    client: ClientConfig = field(default_factory=ClientConfig)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() not in _FALSE_VALUES


def _from_mapping(data: Mapping[str, Any], source: str) -> DairinConfig:
    api_key = data.get('api_key')
    secret_key = data.get('secret_key')

    if not api_key:
        raise ConfigurationError(f"Missing api_key in {source}", "MISSING_API_KEY")
    if not secret_key:
        raise ConfigurationError(f"Missing secret_key in {source}", "MISSING_SECRET_KEY")

    client_kwargs: Dict[str, Any] = {}
    try:
        if data.get('base_url'):
            client_kwargs['base_url'] = str(data['base_url'])
        if data.get('timeout') is not None:
            client_kwargs['timeout'] = float(data['timeout'])
        if data.get('verify_ssl') is not None:
            verify = data['verify_ssl']
            client_kwargs['verify_ssl'] = _parse_bool(verify) if isinstance(verify, str) else bool(verify)
        if data.get('retry_attempts') is not None:
            client_kwargs['retry_attempts'] = int(data['retry_attempts'])
        if data.get('retry_backoff_factor') is not None:
            client_kwargs['retry_backoff_factor'] = float(data['retry_backoff_factor'])
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid value in {source}: {e}",
            "INVALID_CONFIG_VALUE",
            {"original_error": str(e)}
        )

    return DairinConfig(
        api_key=str(api_key),
        secret_key=str(secret_key),
        client=ClientConfig(**client_kwargs)
    )


def load_config_from_env(
    prefix: str = DEFAULT_ENV_PREFIX,
    environ: Optional[Mapping[str, str]] = None
) -> DairinConfig:
    """
    Load configuration from environment variables.

    Reads ``{prefix}API_KEY``, ``{prefix}SECRET_KEY``, ``{prefix}BASE_URL``,
    ``{prefix}TIMEOUT``, ``{prefix}VERIFY_SSL`` and ``{prefix}RETRY_ATTEMPTS``.

    Args:
        prefix: Environment variable prefix
        environ: Mapping to read instead of ``os.environ``

    Returns:
        DairinConfig: Loaded configuration

    Raises:
        ConfigurationError: If credentials are missing or values are malformed
    """
    if environ is None:
        environ = os.environ

    keys = ('api_key', 'secret_key', 'base_url', 'timeout', 'verify_ssl', 'retry_attempts')
    data = {}
    for key in keys:
        value = environ.get(f"{prefix}{key.upper()}")
        if value is not None and value != "":
            data[key] = value

    return _from_mapping(data, "environment")


def load_config_from_file(file_path: Union[str, Path]) -> DairinConfig:
    """
    Load configuration from a JSON file.

    Args:
        file_path: Path to a JSON object with ``api_key``, ``secret_key`` and
            optional connection settings

    Returns:
        DairinConfig: Loaded configuration

    Raises:
        ConfigurationError: If the file cannot be read or is invalid
    """
    path = Path(file_path)
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: {path}", "CONFIG_NOT_FOUND")
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid JSON in configuration file {path}: {e}",
            "INVALID_CONFIG_FORMAT"
        )

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file {path} must contain a JSON object",
            "INVALID_CONFIG_FORMAT"
        )

    return _from_mapping(data, str(path))
