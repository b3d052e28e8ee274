"""
Type definitions for request signing functionality

This module provides the value objects, the signer protocol and the error type
used by the HMAC-SHA256 request signer.
"""

from typing import Dict, Mapping, Optional, Union, Callable, Any, Protocol, runtime_checkable
from dataclasses import dataclass, field


# Type aliases for convenience
SecretKey = Union[str, bytes]
RequestBody = Union[str, bytes, None]
QueryParams = Mapping[str, str]
NonceGenerator = Callable[[], str]
TimestampGenerator = Callable[[], str]
HeaderDict = Dict[str, str]


# Header names understood by the Dairin API
HEADER_API_KEY = "X-API-Key"
HEADER_TIMESTAMP = "X-Timestamp"
HEADER_NONCE = "X-Nonce"
HEADER_SIGNATURE = "X-Signature"


@dataclass(frozen=True)
class SigningInput:
    """
    Request fields covered by the signature

    Attributes:
        http_method: HTTP method, any case (normalized to uppercase when signing)
        path: Request path only, without scheme, host or query string
        query_params: Query parameters; insertion order does not matter
        body: Serialized request body, or None
        timestamp: UNIX seconds as a decimal string
        nonce: Per-request random token
    """
    http_method: str
    path: str
    query_params: QueryParams = field(default_factory=dict)
    body: RequestBody = None
    timestamp: str = ""
    nonce: str = ""

    def __post_init__(self):
        """Validate field types and take a private copy of the query params"""
        for name in ('http_method', 'path', 'timestamp', 'nonce'):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise SigningError(
                    f"{name} must be a string, got {type(value).__name__}",
                    SigningErrorCodes.INVALID_SIGNING_INPUT,
                    {"field": name}
                )

        query_params = self.query_params
        if query_params is None:
            query_params = {}
        if not isinstance(query_params, Mapping):
            raise SigningError(
                f"query_params must be a mapping, got {type(query_params).__name__}",
                SigningErrorCodes.INVALID_SIGNING_INPUT,
                {"field": "query_params"}
            )
        object.__setattr__(self, 'query_params', dict(query_params))

        if self.body is not None and not isinstance(self.body, (str, bytes)):
            raise SigningError(
                f"body must be str, bytes or None, got {type(self.body).__name__}",
                SigningErrorCodes.INVALID_SIGNING_INPUT,
                {"field": "body"}
            )


@dataclass
class SignatureResult:
    """
    Generated signature with the data it was computed over

    Attributes:
        signature: Base64-encoded HMAC-SHA256 digest
        canonical_string: Canonical string that was signed
        timestamp: Timestamp fed into the canonical string
        nonce: Nonce fed into the canonical string
    """
    signature: str
    canonical_string: str
    timestamp: str
    nonce: str

    @property
    def headers(self) -> HeaderDict:
        """Signature-related headers to attach to the outgoing request"""
        return {
            HEADER_TIMESTAMP: self.timestamp,
            HEADER_NONCE: self.nonce,
            HEADER_SIGNATURE: self.signature,
        }


@runtime_checkable
class Signer(Protocol):
    """Protocol for request signing strategies"""

    def sign(self, signing_input: SigningInput) -> str:
        """Return the signature for the given request fields"""
        ...


class SigningError(Exception):
    """
    Error class for signing operations

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Optional additional error details
    """

    def __init__(
        self,
        message: str,
        code: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (code: {self.code}, details: {self.details})"
        return f"{self.message} (code: {self.code})"

    def __repr__(self) -> str:
        return f"SigningError(message='{self.message}', code='{self.code}', details={self.details})"


class SigningErrorCodes:
    """Standard error codes for signing operations"""

    # Configuration errors
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_SECRET_KEY = "INVALID_SECRET_KEY"
    INVALID_API_KEY = "INVALID_API_KEY"

    # Input errors
    INVALID_SIGNING_INPUT = "INVALID_SIGNING_INPUT"
    INVALID_URL = "INVALID_URL"

    # Signing errors
    SIGNING_FAILED = "SIGNING_FAILED"

    # Freshness token errors
    INVALID_NONCE = "INVALID_NONCE"
    INVALID_TIMESTAMP = "INVALID_TIMESTAMP"
