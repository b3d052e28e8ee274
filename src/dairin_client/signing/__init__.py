"""
Dairin Python Client - Request Signing Module

HMAC-SHA256 request signatures over a canonical string of method, path,
sorted query, body hash, timestamp and nonce.
"""

from .types import (
    SigningInput,
    SignatureResult,
    Signer,
    SigningError,
    SigningErrorCodes,
    HEADER_API_KEY,
    HEADER_TIMESTAMP,
    HEADER_NONCE,
    HEADER_SIGNATURE,
)

from .canonical_string import (
    build_canonical_string,
    build_sorted_query_string,
    calculate_body_hash,
)

from .hmac_signer import (
    HMACSigner,
    create_signer,
    sign,
)

from .signing_config import (
    SigningConfig,
    SigningConfigBuilder,
    create_signing_config,
    validate_signing_config,
)

from .utils import (
    generate_nonce,
    generate_timestamp,
    validate_nonce,
    validate_timestamp,
    validate_path,
    validate_secret_key,
    parse_url,
)

from .integration import (
    SigningSession,
    create_signing_session,
    sign_prepared_request,
    build_signed_headers,
)

# Public API exports
__all__ = [
    # Core signing functionality
    'HMACSigner',
    'create_signer',
    'sign',
    # Canonical string
    'build_canonical_string',
    'build_sorted_query_string',
    'calculate_body_hash',
    # Types
    'SigningInput',
    'SignatureResult',
    'Signer',
    'SigningError',
    'SigningErrorCodes',
    'HEADER_API_KEY',
    'HEADER_TIMESTAMP',
    'HEADER_NONCE',
    'HEADER_SIGNATURE',
    # Configuration
    'SigningConfig',
    'SigningConfigBuilder',
    'create_signing_config',
    'validate_signing_config',
    # Utilities
    'generate_nonce',
    'generate_timestamp',
    'validate_nonce',
    'validate_timestamp',
    'validate_path',
    'validate_secret_key',
    'parse_url',
    # HTTP Integration
    'SigningSession',
    'create_signing_session',
    'sign_prepared_request',
    'build_signed_headers',
]
