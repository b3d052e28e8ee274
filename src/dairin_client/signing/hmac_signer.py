"""
HMAC-SHA256 request signer

This module provides the signer used to authenticate requests to the Dairin API.
The signature is HMAC-SHA256 over the canonical string, keyed with the raw secret
key and base64 encoded.
"""

import logging
from typing import Mapping, Optional

from cryptography.hazmat.primitives import hashes, hmac

from .types import (
    SigningInput,
    SignatureResult,
    SigningError,
    SigningErrorCodes,
    SecretKey,
    RequestBody,
)
from .utils import to_key_bytes, b64encode, PerformanceTimer
from .canonical_string import build_canonical_string

logger = logging.getLogger(__name__)

SIGNATURE_DIGEST_LENGTH = 32


class HMACSigner:
    """
    HMAC-SHA256 request signer

    Holds only the secret key, which is read-only after construction, so one
    instance can be shared between threads.
    """

    def __init__(self, secret_key: SecretKey):
        """
        Initialize the signer.

        Args:
            secret_key: Raw HMAC key material (str is UTF-8 encoded)

        Raises:
            SigningError: If the key is empty or of the wrong type
        """
        self._key = to_key_bytes(secret_key)

    def __repr__(self) -> str:
        return "HMACSigner(secret_key=<redacted>)"

    def sign(self, signing_input: SigningInput) -> str:
        """
        Sign request fields.

        Args:
            signing_input: Request fields to sign

        Returns:
            str: Base64-encoded HMAC-SHA256 signature
        """
        return self.sign_with_details(signing_input).signature

    def sign_with_details(self, signing_input: SigningInput) -> SignatureResult:
        """
        Sign request fields and return the canonical string alongside the signature.

        Args:
            signing_input: Request fields to sign

        Returns:
            SignatureResult: Signature, canonical string and freshness tokens

        Raises:
            SigningError: If signing fails
        """
        if not isinstance(signing_input, SigningInput):
            raise SigningError(
                "signing_input must be a SigningInput instance",
                SigningErrorCodes.INVALID_SIGNING_INPUT,
                {"input_type": type(signing_input).__name__}
            )

        timer = PerformanceTimer()

        try:
            canonical_string = build_canonical_string(signing_input)
            digest = self._compute_hmac(canonical_string)
        except Exception as e:
            if isinstance(e, SigningError):
                raise

            raise SigningError(
                f"Request signing failed: {e}",
                SigningErrorCodes.SIGNING_FAILED,
                {"original_error": str(e)}
            )

        logger.debug(
            f"Signed {signing_input.http_method.upper()} {signing_input.path} "
            f"in {timer.elapsed_ms():.3f}ms"
        )

        return SignatureResult(
            signature=b64encode(digest),
            canonical_string=canonical_string,
            timestamp=signing_input.timestamp,
            nonce=signing_input.nonce,
        )

    def generate_signature(
        self,
        http_method: str,
        path: str,
        query_params: Optional[Mapping[str, str]],
        body: RequestBody,
        timestamp: str,
        nonce: str
    ) -> str:
        """
        Sign request fields given as separate arguments.

        Args:
            http_method: HTTP method (any case)
            path: Request path
            query_params: Query parameters (may be empty or None)
            body: Serialized request body or None
            timestamp: UNIX seconds as a decimal string
            nonce: Per-request random token

        Returns:
            str: Base64-encoded HMAC-SHA256 signature
        """
        return self.sign(SigningInput(
            http_method=http_method,
            path=path,
            query_params=query_params or {},
            body=body,
            timestamp=timestamp,
            nonce=nonce,
        ))

    def _compute_hmac(self, canonical_string: str) -> bytes:
        h = hmac.HMAC(self._key, hashes.SHA256())
        h.update(canonical_string.encode('utf-8'))
        return h.finalize()


def create_signer(secret_key: SecretKey) -> HMACSigner:
    """
    Create a new HMAC signer.

    Args:
        secret_key: Raw HMAC key material

    Returns:
        HMACSigner: Configured signer instance
    """
    return HMACSigner(secret_key)


def sign(
    secret_key: SecretKey,
    http_method: str,
    path: str,
    query_params: Optional[Mapping[str, str]],
    body: RequestBody,
    timestamp: str,
    nonce: str
) -> str:
    """
    Compute the request signature.

    Args:
        secret_key: Raw HMAC key material
        http_method: HTTP method (any case)
        path: Request path
        query_params: Query parameters (may be empty or None)
        body: Serialized request body or None
        timestamp: UNIX seconds as a decimal string
        nonce: Per-request random token

    Returns:
        str: Base64-encoded HMAC-SHA256 signature
    """
    return create_signer(secret_key).generate_signature(
        http_method, path, query_params, body, timestamp, nonce
    )
