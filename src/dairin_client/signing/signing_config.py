"""
Configuration management for request signing

This module provides the signing configuration (credentials plus freshness token
providers), a fluent builder and validation.
"""

from typing import Optional
from dataclasses import dataclass, field

from .types import (
    SigningError,
    SigningErrorCodes,
    SecretKey,
    NonceGenerator,
    TimestampGenerator,
)
from .utils import (
    generate_nonce,
    generate_timestamp,
    validate_secret_key,
    validate_nonce,
    validate_timestamp,
)


@dataclass
class SigningConfig:
    """
    Configuration for request signing

    Attributes:
        api_key: API key identifier, sent in X-API-Key and not signed
        secret_key: HMAC secret key
        nonce_generator: Zero-argument callable returning a fresh nonce
        timestamp_generator: Zero-argument callable returning UNIX seconds as a string
    """
    api_key: str
    secret_key: SecretKey = field(repr=False)
    nonce_generator: Optional[NonceGenerator] = None
    timestamp_generator: Optional[TimestampGenerator] = None

    def __post_init__(self):
        """Validate signing configuration"""
        if not self.api_key or not isinstance(self.api_key, str):
            raise SigningError(
                "API key must be a non-empty string",
                SigningErrorCodes.INVALID_API_KEY
            )

        if not validate_secret_key(self.secret_key):
            raise SigningError(
                "Secret key must be a non-empty str or bytes value",
                SigningErrorCodes.INVALID_SECRET_KEY
            )

    def next_nonce(self) -> str:
        """Produce a nonce with the configured generator."""
        return (self.nonce_generator or generate_nonce)()

    def next_timestamp(self) -> str:
        """Produce a timestamp with the configured generator."""
        return (self.timestamp_generator or generate_timestamp)()


class SigningConfigBuilder:
    """
    Builder for creating signing configurations with fluent API
    """

    def __init__(self):
        self._api_key: Optional[str] = None
        self._secret_key: Optional[SecretKey] = None
        self._nonce_generator: Optional[NonceGenerator] = None
        self._timestamp_generator: Optional[TimestampGenerator] = None

    def api_key(self, api_key: str) -> 'SigningConfigBuilder':
        """
        Set API key.

        Args:
            api_key: API key identifier

        Returns:
            SigningConfigBuilder: Self for method chaining
        """
        self._api_key = api_key
        return self

    def secret_key(self, secret_key: SecretKey) -> 'SigningConfigBuilder':
        """
        Set secret key for signing.

        Args:
            secret_key: HMAC secret key

        Returns:
            SigningConfigBuilder: Self for method chaining
        """
        self._secret_key = secret_key
        return self

    def nonce_generator(self, generator: NonceGenerator) -> 'SigningConfigBuilder':
        """Set custom nonce generator."""
        self._nonce_generator = generator
        return self

    def timestamp_generator(self, generator: TimestampGenerator) -> 'SigningConfigBuilder':
        """Set custom timestamp generator."""
        self._timestamp_generator = generator
        return self

    def build(self) -> SigningConfig:
        """
        Build the signing configuration.

        Returns:
            SigningConfig: Complete signing configuration

        Raises:
            SigningError: If configuration is invalid
        """
        if self._api_key is None:
            raise SigningError(
                "API key is required",
                SigningErrorCodes.INVALID_CONFIG
            )

        if self._secret_key is None:
            raise SigningError(
                "Secret key is required",
                SigningErrorCodes.INVALID_CONFIG
            )

        return SigningConfig(
            api_key=self._api_key,
            secret_key=self._secret_key,
            nonce_generator=self._nonce_generator or generate_nonce,
            timestamp_generator=self._timestamp_generator or generate_timestamp
        )


def create_signing_config() -> SigningConfigBuilder:
    """
    Create a new signing configuration builder.

    Returns:
        SigningConfigBuilder: New configuration builder
    """
    return SigningConfigBuilder()


def validate_signing_config(config: SigningConfig) -> None:
    """
    Validate signing configuration, including a trial run of its generators.

    Args:
        config: Signing configuration to validate

    Raises:
        SigningError: If configuration is invalid
    """
    if not isinstance(config, SigningConfig):
        raise SigningError(
            "Configuration must be SigningConfig instance",
            SigningErrorCodes.INVALID_CONFIG
        )

    try:
        test_nonce = config.next_nonce()
    except Exception as e:
        raise SigningError(
            f"Nonce generator failed: {e}",
            SigningErrorCodes.INVALID_CONFIG,
            {"original_error": str(e)}
        )
    if not validate_nonce(test_nonce):
        raise SigningError(
            "Nonce generator must return a non-empty header-safe string",
            SigningErrorCodes.INVALID_NONCE,
            {"nonce": test_nonce}
        )

    try:
        test_timestamp = config.next_timestamp()
    except Exception as e:
        raise SigningError(
            f"Timestamp generator failed: {e}",
            SigningErrorCodes.INVALID_CONFIG,
            {"original_error": str(e)}
        )
    if not validate_timestamp(test_timestamp):
        raise SigningError(
            "Timestamp generator must return UNIX seconds as a decimal string",
            SigningErrorCodes.INVALID_TIMESTAMP,
            {"timestamp": test_timestamp}
        )
