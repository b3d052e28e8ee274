"""
HTTP client for the Dairin API

This module provides the client that serializes JSON payloads, signs each
request with HMAC-SHA256 and sends it with requests.
"""

import json
import logging
from typing import Any, Mapping, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import ClientConfig, DairinConfig, DEFAULT_BASE_URL
from .exceptions import ServerCommunicationError, ValidationError
from .signing.hmac_signer import HMACSigner
from .signing.integration import build_signed_headers
from .signing.signing_config import SigningConfig
from .signing.types import NonceGenerator, TimestampGenerator, HeaderDict
from .signing.utils import validate_nonce, validate_timestamp, validate_path
from .version import __version__

logger = logging.getLogger(__name__)

PING_PATH = '/api/v1/ping'


class DairinClient:
    """
    HTTP client for the Dairin API.

    Every request carries X-API-Key, X-Timestamp, X-Nonce and X-Signature
    headers. Timestamps and nonces come from the injectable generators so the
    signing inputs can be fixed in tests.
    """

    def __init__(
        self,
        api_key: str,
        secret_key: str,
        base_url: str = DEFAULT_BASE_URL,
        config: Optional[ClientConfig] = None,
        session: Optional[requests.Session] = None,
        nonce_generator: Optional[NonceGenerator] = None,
        timestamp_generator: Optional[TimestampGenerator] = None
    ):
        """
        Initialize the client.

        Args:
            api_key: API key identifier
            secret_key: HMAC secret key
            base_url: API base URL, ignored when ``config`` is given
            config: Connection settings
            session: Optional requests session (no retry adapter is mounted on it)
            nonce_generator: Optional nonce provider
            timestamp_generator: Optional clock provider
        """
        self.config = config or ClientConfig(base_url=base_url)
        self.signing_config = SigningConfig(
            api_key=api_key,
            secret_key=secret_key,
            nonce_generator=nonce_generator,
            timestamp_generator=timestamp_generator
        )
        self.signer = HMACSigner(secret_key)
        self.session = session or self._create_session()

        logger.info(f"Initialized Dairin client for server: {self.config.base_url}")

    @classmethod
    def from_config(cls, config: DairinConfig, **kwargs) -> 'DairinClient':
        """Create a client from loaded configuration."""
        return cls(config.api_key, config.secret_key, config=config.client, **kwargs)

    def _create_session(self) -> requests.Session:
        """Create HTTP session with retry logic."""
        session = requests.Session()

        # Only failed connects are retried: a request that reached the server
        # has spent its nonce, and a resend would carry the same signed headers
        retry_strategy = Retry(
            total=self.config.retry_attempts,
            connect=self.config.retry_attempts,
            read=0,
            status=0,
            respect_retry_after_header=False,
            backoff_factor=self.config.retry_backoff_factor,
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({
            'Accept': 'application/json',
            'User-Agent': f'Dairin-Python-Client/{__version__}'
        })

        return session

    def ping(self) -> requests.Response:
        """
        Send a connectivity check request.

        The body is the empty JSON object ``{}``. Older PHP clients sent the
        empty array ``[]`` instead; both verify, since the server hashes the
        bytes it receives.

        Returns:
            requests.Response: Server response
        """
        return self.post_json(PING_PATH, {})

    def post_json(
        self,
        path: str,
        data: Any,
        query_params: Optional[Mapping[str, str]] = None
    ) -> requests.Response:
        """
        Send a signed POST request with a JSON body.

        Args:
            path: API path (e.g. /api/v1/resource)
            data: JSON-serializable payload
            query_params: Optional query parameters

        Returns:
            requests.Response: Server response, whatever its status

        Raises:
            ValidationError: If the request fields are invalid
            ServerCommunicationError: On network errors
        """
        body = json.dumps(data, separators=(',', ':'), ensure_ascii=False)
        return self.request('POST', path, query_params=query_params, body=body,
                            content_type='application/json')

    def request(
        self,
        method: str,
        path: str,
        query_params: Optional[Mapping[str, str]] = None,
        body: Optional[str] = None,
        content_type: Optional[str] = None
    ) -> requests.Response:
        """
        Send a signed request.

        Args:
            method: HTTP method
            path: API path
            query_params: Optional query parameters
            body: Already serialized body
            content_type: Content-Type header value

        Returns:
            requests.Response: Server response

        Raises:
            ValidationError: If the request fields are invalid
            ServerCommunicationError: On network errors
        """
        query_params = dict(query_params or {})
        headers = self.build_signed_headers(method, path, query_params, body)
        if content_type:
            headers['Content-Type'] = content_type

        url = self.config.base_url + path
        payload = body.encode('utf-8') if isinstance(body, str) else body

        try:
            logger.debug(f"Making {method.upper()} request to {url}")
            return self.session.request(
                method.upper(),
                url,
                params=query_params or None,
                data=payload,
                headers=headers,
                timeout=self.config.timeout,
                verify=self.config.verify_ssl,
            )
        except requests.exceptions.Timeout:
            raise ServerCommunicationError(f"Request timeout after {self.config.timeout} seconds")
        except requests.exceptions.ConnectionError as e:
            raise ServerCommunicationError(f"Connection error: {e}")
        except requests.exceptions.RequestException as e:
            raise ServerCommunicationError(f"Request failed: {e}")

    def build_signed_headers(
        self,
        method: str,
        path: str,
        query_params: Optional[Mapping[str, str]] = None,
        body: Optional[str] = None
    ) -> HeaderDict:
        """
        Validate the request fields and build the authentication headers.

        Args:
            method: HTTP method
            path: API path
            query_params: Query parameters
            body: Serialized body

        Returns:
            dict: X-API-Key, X-Timestamp, X-Nonce and X-Signature headers

        Raises:
            ValidationError: If the path or generated tokens are invalid,
                checked before anything is signed
        """
        if not validate_path(path):
            raise ValidationError(
                f"Invalid request path: {path!r}",
                "INVALID_PATH",
                {"path": path}
            )

        timestamp = self.signing_config.next_timestamp()
        if not validate_timestamp(timestamp):
            raise ValidationError(
                f"Invalid timestamp: {timestamp!r}",
                "INVALID_TIMESTAMP"
            )

        nonce = self.signing_config.next_nonce()
        if not validate_nonce(nonce):
            raise ValidationError(
                f"Invalid nonce: {nonce!r}",
                "INVALID_NONCE"
            )

        return build_signed_headers(
            self.signing_config,
            self.signer,
            method,
            path,
            dict(query_params or {}),
            body,
            timestamp=timestamp,
            nonce=nonce
        )

    def close(self) -> None:
        """Close the underlying session."""
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()


def create_client(
    api_key: str,
    secret_key: str,
    base_url: str = DEFAULT_BASE_URL,
    **kwargs
) -> DairinClient:
    """
    Create a Dairin client.

    Args:
        api_key: API key identifier
        secret_key: HMAC secret key
        base_url: API base URL
        **kwargs: Additional ClientConfig settings (timeout, verify_ssl, ...)

    Returns:
        DairinClient: Configured client
    """
    return DairinClient(api_key, secret_key, config=ClientConfig(base_url=base_url, **kwargs))
