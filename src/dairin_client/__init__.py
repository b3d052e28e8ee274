"""
Dairin Python Client
HMAC-SHA256 request signing for the Dairin API
"""

from .version import __version__
from .exceptions import (
    DairinClientError,
    ValidationError,
    ConfigurationError,
    ServerCommunicationError,
)
from .config import (
    ClientConfig,
    DairinConfig,
    load_config_from_env,
    load_config_from_file,
)
from .http_client import (
    DairinClient,
    create_client,
)
from .signing import (
    # Core signing functionality
    HMACSigner,
    create_signer,
    sign,
    build_canonical_string,
    # Types
    SigningInput,
    SignatureResult,
    Signer,
    SigningError,
    # Configuration
    SigningConfig,
    create_signing_config,
    # Freshness tokens
    generate_nonce,
    generate_timestamp,
    # HTTP Integration
    SigningSession,
    create_signing_session,
)

# Public API exports
__all__ = [
    '__version__',
    # Exceptions
    'DairinClientError',
    'ValidationError',
    'ConfigurationError',
    'ServerCommunicationError',
    # Configuration
    'ClientConfig',
    'DairinConfig',
    'load_config_from_env',
    'load_config_from_file',
    # HTTP Client
    'DairinClient',
    'create_client',
    # Request Signing
    'HMACSigner',
    'create_signer',
    'sign',
    'build_canonical_string',
    'SigningInput',
    'SignatureResult',
    'Signer',
    'SigningError',
    'SigningConfig',
    'create_signing_config',
    'generate_nonce',
    'generate_timestamp',
    'SigningSession',
    'create_signing_session',
]
