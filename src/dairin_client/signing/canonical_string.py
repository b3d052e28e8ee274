"""
Canonical string construction for HMAC request signatures

The canonical string is the exact input to the HMAC computation: six request
fields joined by a single newline, always in the same order and always present.
"""

import hashlib
from typing import List, Mapping
from urllib.parse import urlencode

from .types import SigningInput, RequestBody
from .utils import to_body_bytes, b64encode

FIELD_SEPARATOR = '\n'

# Non-empty bodies the server still hashes as empty
FALSY_BODIES = ('0', b'0')


def build_sorted_query_string(query_params: Mapping[str, str]) -> str:
    """
    Build the form-encoded query string with keys in byte-wise ascending order.

    Args:
        query_params: Query parameters (any insertion order)

    Returns:
        str: ``key1=value1&key2=value2`` with space encoded as ``+``,
            or an empty string when there are no parameters
    """
    if not query_params:
        return ''

    items = sorted(query_params.items(), key=lambda item: str(item[0]).encode('utf-8'))
    return urlencode(items)


def calculate_body_hash(body: RequestBody) -> str:
    """
    Calculate the body hash field.

    An empty or missing body contributes an empty string, not the hash of
    zero bytes. The server-side verifier applies a falsy check that also
    covers the one-character body ``"0"``, so that body is treated the same.

    Args:
        body: Serialized request body (string, bytes, or None)

    Returns:
        str: Base64-encoded SHA-256 digest of the body, or ``''``
    """
    if not body or body in FALSY_BODIES:
        return ''

    return b64encode(hashlib.sha256(to_body_bytes(body)).digest())


def canonical_fields(signing_input: SigningInput) -> List[str]:
    """
    Compute the canonical field values in signing order.

    Args:
        signing_input: Request fields to sign

    Returns:
        list: Method, path, query string, body hash, timestamp and nonce
    """
    return [
        signing_input.http_method.upper(),
        signing_input.path,
        build_sorted_query_string(signing_input.query_params),
        calculate_body_hash(signing_input.body),
        signing_input.timestamp,
        signing_input.nonce,
    ]


def build_canonical_string(signing_input: SigningInput) -> str:
    """
    Build the canonical string for signing.

    Args:
        signing_input: Request fields to sign

    Returns:
        str: Newline-joined canonical string, without a trailing newline
    """
    return FIELD_SEPARATOR.join(canonical_fields(signing_input))
