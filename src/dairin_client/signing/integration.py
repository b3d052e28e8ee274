"""
HTTP client integration for request signing

This module provides integration between the HMAC signer and the requests
library, enabling automatic signing of outbound HTTP requests.
"""

import json
import logging
from typing import Dict, Optional, Any

import requests
from requests.models import PreparedRequest

from .types import (
    SigningInput,
    SignatureResult,
    HeaderDict,
    HEADER_API_KEY,
)
from .hmac_signer import HMACSigner
from .signing_config import SigningConfig
from .utils import parse_url

logger = logging.getLogger(__name__)


def build_signed_headers(
    config: SigningConfig,
    signer: HMACSigner,
    method: str,
    path: str,
    query_params: Optional[Dict[str, str]] = None,
    body: Any = None,
    timestamp: Optional[str] = None,
    nonce: Optional[str] = None
) -> HeaderDict:
    """
    Sign the request and return its auth headers.

    Args:
        config: Signing configuration (API key and token generators)
        signer: Signer holding the secret key
        method: HTTP method
        path: Request path
        query_params: Query parameters
        body: Serialized body
        timestamp: Timestamp to use instead of a generated one
        nonce: Nonce to use instead of a generated one

    Returns:
        dict: X-API-Key, X-Timestamp, X-Nonce and X-Signature headers
    """
    result = sign_fields(config, signer, method, path, query_params, body, timestamp, nonce)
    headers = {HEADER_API_KEY: config.api_key}
    headers.update(result.headers)
    return headers


def sign_fields(
    config: SigningConfig,
    signer: HMACSigner,
    method: str,
    path: str,
    query_params: Optional[Dict[str, str]] = None,
    body: Any = None,
    timestamp: Optional[str] = None,
    nonce: Optional[str] = None
) -> SignatureResult:
    """Sign request fields, drawing missing tokens from the configured generators."""
    signing_input = SigningInput(
        http_method=method,
        path=path,
        query_params=query_params or {},
        body=body,
        timestamp=config.next_timestamp() if timestamp is None else timestamp,
        nonce=config.next_nonce() if nonce is None else nonce,
    )
    return signer.sign_with_details(signing_input)


class SigningSession:
    """
    HTTP session wrapper with automatic request signing.

    Wraps a requests.Session and adds signature headers to every outgoing
    request. JSON payloads are serialized once so the bytes sent are the bytes
    that were signed.
    """

    def __init__(
        self,
        signing_config: SigningConfig,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize signing session.

        Args:
            signing_config: Signing configuration
            session: Optional existing requests session to wrap
        """
        self.session = session or requests.Session()
        self.signing_config = signing_config
        self.signer = HMACSigner(signing_config.secret_key)

    def request(self, method: str, url: str, **kwargs) -> requests.Response:
        """
        Sign and send an HTTP request.

        Args:
            method: HTTP method
            url: Absolute request URL (may include a query string)
            **kwargs: Additional arguments for requests

        Returns:
            requests.Response: HTTP response
        """
        kwargs = self._sign_request_kwargs(method, url, **kwargs)
        return self.session.request(method, url, **kwargs)

    def _sign_request_kwargs(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        """
        Sign request and modify kwargs to include signature headers.

        Args:
            method: HTTP method
            url: Request URL
            **kwargs: Original request arguments

        Returns:
            dict: Modified kwargs with signature headers
        """
        headers = dict(kwargs.get('headers') or {})

        if kwargs.get('json') is not None:
            kwargs['data'] = json.dumps(kwargs.pop('json'))
            if 'content-type' not in {k.lower() for k in headers}:
                headers['Content-Type'] = 'application/json'
        else:
            kwargs.pop('json', None)

        # Form dicts and streams are rejected by SigningInput
        body = kwargs.get('data')

        url_parts = parse_url(url)
        query_params = dict(url_parts['query_params'])
        query_params.update(kwargs.get('params') or {})

        headers.update(build_signed_headers(
            self.signing_config,
            self.signer,
            method,
            url_parts['path'],
            query_params,
            body
        ))
        kwargs['headers'] = headers

        logger.debug(f"Signed {method.upper()} request to {url}")
        return kwargs

    def get(self, url: str, **kwargs) -> requests.Response:
        """Make GET request."""
        return self.request('GET', url, **kwargs)

    def post(self, url: str, **kwargs) -> requests.Response:
        """Make POST request."""
        return self.request('POST', url, **kwargs)

    def put(self, url: str, **kwargs) -> requests.Response:
        """Make PUT request."""
        return self.request('PUT', url, **kwargs)

    def delete(self, url: str, **kwargs) -> requests.Response:
        """Make DELETE request."""
        return self.request('DELETE', url, **kwargs)

    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def create_signing_session(
    signing_config: SigningConfig,
    session: Optional[requests.Session] = None
) -> SigningSession:
    """
    Create a new signing session.

    Args:
        signing_config: Signing configuration
        session: Optional requests session to wrap

    Returns:
        SigningSession: Configured signing session
    """
    return SigningSession(signing_config=signing_config, session=session)


def sign_prepared_request(
    prepared_request: PreparedRequest,
    config: SigningConfig
) -> PreparedRequest:
    """
    Sign a prepared request in place.

    Args:
        prepared_request: Prepared request to sign
        config: Signing configuration

    Returns:
        PreparedRequest: Request with signature headers added
    """
    url_parts = parse_url(prepared_request.url)

    headers = build_signed_headers(
        config,
        HMACSigner(config.secret_key),
        prepared_request.method,
        url_parts['path'],
        url_parts['query_params'],
        prepared_request.body
    )
    prepared_request.headers.update(headers)

    return prepared_request
