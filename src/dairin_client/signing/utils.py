"""
Utility functions for request signing

This module provides utility functions for HMAC request signing, including
freshness token generation (timestamp and nonce), caller-side field validation,
key and body encoding, and URL parsing.
"""

import re
import time
import base64
import secrets
from typing import Dict, Union
from urllib.parse import urlparse, parse_qsl

from .types import (
    SigningError,
    SigningErrorCodes,
    RequestBody,
    SecretKey,
)

# Nonce sizes accepted by the server: 8 or 16 random bytes, hex encoded
DEFAULT_NONCE_BYTES = 8
SUPPORTED_NONCE_BYTES = (8, 16)

# Caller-side field limits, checked before signing
MAX_NONCE_LENGTH = 64
MAX_PATH_LENGTH = 2048

_NONCE_PATTERN = re.compile(r'^[\x21-\x7e]+$')
_TIMESTAMP_PATTERN = re.compile(r'^[0-9]+$')


def generate_nonce(num_bytes: int = DEFAULT_NONCE_BYTES) -> str:
    """
    Generate a hex-encoded random nonce for replay protection.

    Args:
        num_bytes: Number of random bytes (8 or 16)

    Returns:
        str: Lowercase hex string of ``2 * num_bytes`` characters

    Raises:
        SigningError: If the size is not supported
    """
    if num_bytes not in SUPPORTED_NONCE_BYTES:
        raise SigningError(
            f"Unsupported nonce size: {num_bytes} bytes",
            SigningErrorCodes.INVALID_NONCE,
            {"num_bytes": num_bytes, "supported": list(SUPPORTED_NONCE_BYTES)}
        )

    return secrets.token_hex(num_bytes)


def generate_timestamp() -> str:
    """
    Generate current Unix timestamp.

    Returns:
        str: Current Unix time in whole seconds, as a decimal string
    """
    return str(int(time.time()))


def validate_nonce(nonce: str) -> bool:
    """
    Validate that a nonce can be carried in the X-Nonce header.

    Args:
        nonce: Nonce string to validate

    Returns:
        bool: True if nonce is non-empty visible ASCII within the length limit
    """
    if not isinstance(nonce, str):
        return False

    if len(nonce) > MAX_NONCE_LENGTH:
        return False

    return bool(_NONCE_PATTERN.match(nonce))


def validate_timestamp(timestamp: str) -> bool:
    """
    Validate timestamp string (decimal Unix seconds).

    Args:
        timestamp: Timestamp string to validate

    Returns:
        bool: True if timestamp is a positive decimal integer string
    """
    if not isinstance(timestamp, str):
        return False

    if not _TIMESTAMP_PATTERN.match(timestamp):
        return False

    return int(timestamp) > 0


def validate_path(path: str) -> bool:
    """
    Validate request path (path component only).

    Args:
        path: Request path to validate

    Returns:
        bool: True if path is absolute, has no query/fragment and fits the limit
    """
    if not isinstance(path, str) or not path.startswith('/'):
        return False

    if '?' in path or '#' in path:
        return False

    return len(path) <= MAX_PATH_LENGTH


def validate_secret_key(secret_key: SecretKey) -> bool:
    """
    Validate HMAC secret key.

    Args:
        secret_key: Secret key as str or bytes

    Returns:
        bool: True if the key is a non-empty str or bytes value
    """
    if not isinstance(secret_key, (str, bytes)):
        return False

    return len(secret_key) > 0


def to_key_bytes(secret_key: SecretKey) -> bytes:
    """
    Convert secret key to raw HMAC key material.

    Strings are UTF-8 encoded; they are never hex or base64 decoded.

    Args:
        secret_key: Secret key as str or bytes

    Returns:
        bytes: Key bytes

    Raises:
        SigningError: If the key is empty or of the wrong type
    """
    if not validate_secret_key(secret_key):
        raise SigningError(
            "Secret key must be a non-empty str or bytes value",
            SigningErrorCodes.INVALID_SECRET_KEY,
            {"key_type": type(secret_key).__name__}
        )

    if isinstance(secret_key, str):
        return secret_key.encode('utf-8')

    return bytes(secret_key)


def to_body_bytes(body: RequestBody) -> bytes:
    """
    Convert request body to bytes.

    Args:
        body: Request body (string, bytes, or None)

    Returns:
        bytes: Body bytes (empty for None)
    """
    if body is None:
        return b""

    if isinstance(body, str):
        return body.encode('utf-8')

    return body


def b64encode(data: bytes) -> str:
    """Standard base64 (with padding) as an ASCII string."""
    return base64.b64encode(data).decode('ascii')


def parse_url(url: str) -> Dict[str, Union[str, Dict[str, str]]]:
    """
    Parse URL to extract components needed for signing.

    Args:
        url: URL string to parse

    Returns:
        dict: Dictionary with parsed URL components:
            - origin: scheme + netloc
            - path: path component ("/" when empty)
            - query_params: query string as a dict (last value wins)

    Raises:
        SigningError: If URL format is invalid
    """
    try:
        parsed = urlparse(url)

        if not parsed.scheme or not parsed.netloc:
            raise SigningError(
                f"Invalid URL format: {url}",
                SigningErrorCodes.INVALID_URL,
                {"url": url}
            )

        if parsed.scheme not in ('http', 'https'):
            raise SigningError(
                f"Unsupported URL scheme: {parsed.scheme}",
                SigningErrorCodes.INVALID_URL,
                {"url": url, "scheme": parsed.scheme}
            )

        return {
            "origin": f"{parsed.scheme}://{parsed.netloc}",
            "path": parsed.path or "/",
            "query_params": dict(parse_qsl(parsed.query, keep_blank_values=True)),
        }

    except Exception as e:
        if isinstance(e, SigningError):
            raise

        raise SigningError(
            f"Failed to parse URL: {e}",
            SigningErrorCodes.INVALID_URL,
            {"url": url, "original_error": str(e)}
        )


class PerformanceTimer:
    """Simple performance timer for monitoring signing operations."""

    def __init__(self):
        self.start_time = time.perf_counter()

    def elapsed_ms(self) -> float:
        """Get elapsed time in milliseconds."""
        return (time.perf_counter() - self.start_time) * 1000
