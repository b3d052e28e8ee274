"""
Test suite for HMAC-SHA256 request signing

This module tests canonical string construction, the signer, the signing
configuration and the freshness token utilities.
"""

import base64
import hashlib
import re
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from dairin_client.signing import (
    # Core signing
    HMACSigner,
    create_signer,
    sign,
    # Canonical string
    build_canonical_string,
    build_sorted_query_string,
    calculate_body_hash,
    # Types
    SigningInput,
    SignatureResult,
    Signer,
    SigningError,
    SigningErrorCodes,
    # Configuration
    SigningConfig,
    create_signing_config,
    validate_signing_config,
    # Utilities
    generate_nonce,
    generate_timestamp,
    validate_nonce,
    validate_timestamp,
    validate_path,
    validate_secret_key,
    parse_url,
)

SECRET = b"testsecret"
TIMESTAMP = "1700000000"
NONCE = "abc123"

# base64(sha256(b"{}"))
EMPTY_OBJECT_HASH = "RBNvo1WzZ4oRRq0W9+hknpT7T8If536DEMBg9hyq/4o="
PING_CANONICAL = "POST\n/api/v1/ping\n\n" + EMPTY_OBJECT_HASH + "\n1700000000\nabc123"
PING_SIGNATURE = "66UqaYGbmpkpCFUAoAblHCRLiSLa6lGkn1CxToMoTjI="
ITEMS_SIGNATURE = "OJXkSatArIR5EcjHsKfbn21G4CsZeMbZcjtd1QocAuI="


def _sign(method="POST", path="/api/v1/ping", query=None, body="{}",
          timestamp=TIMESTAMP, nonce=NONCE, key=SECRET):
    return sign(key, method, path, query or {}, body, timestamp, nonce)


class TestKnownVectors:
    """Stored test vectors"""

    def test_ping_canonical_string(self):
        """Test canonical string for the ping request"""
        signing_input = SigningInput(
            http_method="POST",
            path="/api/v1/ping",
            query_params={},
            body="{}",
            timestamp=TIMESTAMP,
            nonce=NONCE,
        )
        assert build_canonical_string(signing_input) == PING_CANONICAL

    def test_ping_signature(self):
        """Test signature for the ping request"""
        assert _sign() == PING_SIGNATURE

    def test_ping_signature_with_str_key(self):
        """String keys are used as raw UTF-8 bytes"""
        assert _sign(key="testsecret") == PING_SIGNATURE

    def test_get_with_query_and_no_body(self):
        """Test vector with sorted query string and empty body hash"""
        signature = sign(
            SECRET,
            "get",
            "/api/v1/items",
            {"q": "hello world", "limit": "10"},
            None,
            TIMESTAMP,
            "0123456789abcdef",
        )
        assert signature == ITEMS_SIGNATURE

    def test_sign_with_details(self):
        """Test detailed result carries canonical string and headers"""
        signer = HMACSigner(SECRET)
        result = signer.sign_with_details(SigningInput(
            http_method="post",
            path="/api/v1/ping",
            body="{}",
            timestamp=TIMESTAMP,
            nonce=NONCE,
        ))

        assert isinstance(result, SignatureResult)
        assert result.signature == PING_SIGNATURE
        assert result.canonical_string == PING_CANONICAL
        assert result.headers == {
            "X-Timestamp": TIMESTAMP,
            "X-Nonce": NONCE,
            "X-Signature": PING_SIGNATURE,
        }


class TestSignatureProperties:
    """Behavioural properties of the signer"""

    def test_determinism(self):
        """Same inputs always give the same signature"""
        query = {"a": "1", "b": "2"}
        assert _sign(query=query) == _sign(query=query)

    def test_method_case_insensitive(self):
        """Method case does not affect the signature"""
        assert _sign(method="post") == _sign(method="POST") == _sign(method="PoSt")

    def test_query_order_independent(self):
        """Insertion order of query params does not affect the signature"""
        assert _sign(query={"b": "2", "a": "1"}) == _sign(query={"a": "1", "b": "2"})

    def test_empty_body_equals_none(self):
        """Empty and missing bodies both contribute an empty body hash"""
        assert _sign(body="") == _sign(body=None)
        assert _sign(body=b"") == _sign(body=None)

    def test_zero_body_equals_none(self):
        """A body of "0" gets the empty body hash, like the server's falsy check"""
        assert calculate_body_hash("0") == ""
        assert calculate_body_hash(b"0") == ""
        assert _sign(body="0") == _sign(body=None)
        assert calculate_body_hash("00") != ""
        assert calculate_body_hash("0.0") != ""

    def test_single_space_body_differs_from_empty(self):
        """A whitespace body is hashed"""
        assert _sign(body=" ") != _sign(body="")

    @pytest.mark.parametrize("changes", [
        {"path": "/api/v1/pong"},
        {"query": {"a": "2"}},
        {"body": "{ }"},
        {"timestamp": "1700000001"},
        {"nonce": "abc124"},
        {"key": b"testsecreT"},
        {"method": "PUT"},
    ])
    def test_sensitivity(self, changes):
        """Changing any single field changes the signature"""
        baseline = _sign(query={"a": "1"})
        kwargs = {"query": {"a": "1"}}
        kwargs.update(changes)
        assert _sign(**kwargs) != baseline

    def test_path_case_sensitive(self):
        """Path is used verbatim"""
        assert _sign(path="/API/v1/ping") != _sign(path="/api/v1/ping")

    def test_signature_format(self):
        """Signature is padded base64 of 32 bytes"""
        for body in (None, "", "{}", "x" * 1000):
            signature = _sign(body=body, query={"k": "v w"})
            assert re.fullmatch(r"[A-Za-z0-9+/]{43}=", signature)
            assert len(base64.b64decode(signature, validate=True)) == 32

    def test_inputs_not_mutated(self):
        """Signing does not modify the caller's query params"""
        query = {"b": "2", "a": "1"}
        _sign(query=query)
        assert list(query.items()) == [("b", "2"), ("a", "1")]

    def test_concurrent_signing(self):
        """A shared signer gives consistent results across threads"""
        signer = HMACSigner(SECRET)
        signing_input = SigningInput(
            http_method="POST",
            path="/api/v1/ping",
            body="{}",
            timestamp=TIMESTAMP,
            nonce=NONCE,
        )

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda _: signer.sign(signing_input), range(200)))

        assert set(results) == {PING_SIGNATURE}

    def test_no_length_limits(self):
        """The signer itself accepts arbitrarily long fields"""
        signature = _sign(path="/" + "p" * 10000, nonce="n" * 5000, timestamp="")
        assert len(base64.b64decode(signature)) == 32


class TestCanonicalString:
    """Test canonical string pieces"""

    def test_empty_query(self):
        """Empty params contribute an empty string"""
        assert build_sorted_query_string({}) == ""

    def test_byte_wise_key_order(self):
        """Keys are sorted by their UTF-8 bytes"""
        query = {"b": "2", "a": "1", "B": "3", "_": "4"}
        assert build_sorted_query_string(query) == "B=3&_=4&a=1&b=2"

    def test_non_ascii_keys_sort_after_ascii(self):
        """Multi-byte keys sort after ASCII keys"""
        query = {"z": "1", "é": "2", "a": "3"}
        assert build_sorted_query_string(query) == "a=3&z=1&%C3%A9=2"

    def test_form_encoding(self):
        """Space becomes '+' and reserved characters are percent-encoded"""
        query = {"q": "a b&c=d/é"}
        assert build_sorted_query_string(query) == "q=a+b%26c%3Dd%2F%C3%A9"

    def test_body_hash(self):
        """Non-empty body is SHA-256 then base64"""
        assert calculate_body_hash("{}") == EMPTY_OBJECT_HASH
        assert calculate_body_hash(b"{}") == EMPTY_OBJECT_HASH

        expected = base64.b64encode(hashlib.sha256("hé".encode("utf-8")).digest()).decode()
        assert calculate_body_hash("hé") == expected

    def test_body_hash_empty(self):
        """Empty body is not hashed"""
        assert calculate_body_hash("") == ""
        assert calculate_body_hash(None) == ""
        assert calculate_body_hash(b"") == ""

    def test_six_fields_always_present(self):
        """All fields are present even when empty, with no trailing newline"""
        canonical = build_canonical_string(SigningInput(http_method="", path=""))
        assert canonical == "\n\n\n\n\n"
        assert len(canonical.split("\n")) == 6

    def test_field_order(self):
        """Fields appear in the documented order"""
        canonical = build_canonical_string(SigningInput(
            http_method="delete",
            path="/x",
            query_params={"k": "v"},
            body="{}",
            timestamp="1",
            nonce="n",
        ))
        assert canonical.split("\n") == ["DELETE", "/x", "k=v", EMPTY_OBJECT_HASH, "1", "n"]


class TestSigner:
    """Test signer construction and errors"""

    def test_signer_protocol(self):
        """HMACSigner satisfies the Signer protocol"""
        assert isinstance(HMACSigner(SECRET), Signer)
        assert isinstance(create_signer(SECRET), HMACSigner)

    def test_generate_signature(self):
        """Positional convenience method matches the module function"""
        signer = HMACSigner(SECRET)
        assert signer.generate_signature("POST", "/api/v1/ping", None, "{}", TIMESTAMP, NONCE) == PING_SIGNATURE

    def test_repr_hides_key(self):
        """The key never appears in repr"""
        assert "testsecret" not in repr(HMACSigner(SECRET))

    @pytest.mark.parametrize("key", [b"", "", None, 123])
    def test_invalid_key(self, key):
        """Empty or non-string keys are rejected"""
        with pytest.raises(SigningError) as exc_info:
            HMACSigner(key)
        assert exc_info.value.code == SigningErrorCodes.INVALID_SECRET_KEY

    def test_invalid_signing_input_types(self):
        """Wrong field types are rejected when building the input"""
        with pytest.raises(SigningError) as exc_info:
            SigningInput(http_method="POST", path="/x", query_params=[("a", "1")])
        assert exc_info.value.code == SigningErrorCodes.INVALID_SIGNING_INPUT

        with pytest.raises(SigningError):
            SigningInput(http_method="POST", path="/x", timestamp=1700000000)

        with pytest.raises(SigningError):
            SigningInput(http_method="POST", path="/x", body={"a": 1})

    def test_sign_rejects_non_input(self):
        """sign() requires a SigningInput"""
        with pytest.raises(SigningError):
            HMACSigner(SECRET).sign({"http_method": "POST"})

    def test_signing_input_copies_query(self):
        """Later changes to the caller's dict do not affect the input"""
        query = {"a": "1"}
        signing_input = SigningInput(http_method="GET", path="/x", query_params=query)
        query["a"] = "2"
        assert signing_input.query_params == {"a": "1"}

    def test_error_str(self):
        """Test SigningError formatting"""
        error = SigningError("bad", "CODE", {"field": "x"})
        assert str(error) == "bad (code: CODE, details: {'field': 'x'})"
        assert str(SigningError("bad", "CODE")) == "bad (code: CODE)"


class TestSigningUtilities:
    """Test utility functions"""

    def test_generate_nonce(self):
        """Test nonce generation"""
        nonce = generate_nonce()
        assert re.fullmatch(r"[0-9a-f]{16}", nonce)
        assert validate_nonce(nonce)

        assert re.fullmatch(r"[0-9a-f]{32}", generate_nonce(16))

        nonces = [generate_nonce() for _ in range(10)]
        assert len(set(nonces)) == 10

    def test_generate_nonce_unsupported_size(self):
        """Only 8 and 16 byte nonces are generated"""
        with pytest.raises(SigningError) as exc_info:
            generate_nonce(4)
        assert exc_info.value.code == SigningErrorCodes.INVALID_NONCE

    def test_generate_timestamp(self):
        """Test timestamp generation"""
        timestamp = generate_timestamp()
        assert isinstance(timestamp, str)
        assert validate_timestamp(timestamp)
        assert abs(int(timestamp) - int(time.time())) < 2

    def test_validate_nonce(self):
        """Test nonce validation"""
        assert validate_nonce("abc123")
        assert validate_nonce("0" * 64)

        assert not validate_nonce("")
        assert not validate_nonce("has space")
        assert not validate_nonce("line\nbreak")
        assert not validate_nonce("0" * 65)
        assert not validate_nonce(None)

    def test_validate_timestamp(self):
        """Test timestamp validation"""
        assert validate_timestamp("1700000000")

        assert not validate_timestamp("")
        assert not validate_timestamp("0")
        assert not validate_timestamp("-1")
        assert not validate_timestamp("1.5")
        assert not validate_timestamp(1700000000)

    def test_validate_path(self):
        """Test path validation"""
        assert validate_path("/api/v1/ping")

        assert not validate_path("api/v1/ping")
        assert not validate_path("/api?x=1")
        assert not validate_path("/api#frag")
        assert not validate_path("/" + "a" * 2048)

    def test_validate_secret_key(self):
        """Test secret key validation"""
        assert validate_secret_key(b"k")
        assert validate_secret_key("k")
        assert not validate_secret_key(b"")
        assert not validate_secret_key(None)

    def test_parse_url(self):
        """Test URL parsing"""
        parsed = parse_url("https://dair.in/api/v1/items?q=hello+world&limit=10")
        assert parsed["origin"] == "https://dair.in"
        assert parsed["path"] == "/api/v1/items"
        assert parsed["query_params"] == {"q": "hello world", "limit": "10"}

        assert parse_url("http://localhost:8080")["path"] == "/"

        with pytest.raises(SigningError):
            parse_url("not-a-url")

        with pytest.raises(SigningError):
            parse_url("ftp://dair.in/file")


class TestSigningConfiguration:
    """Test signing configuration and builder"""

    def test_builder(self):
        """Test signing configuration builder"""
        config = (create_signing_config()
                  .api_key("key-1")
                  .secret_key(SECRET)
                  .nonce_generator(lambda: NONCE)
                  .timestamp_generator(lambda: TIMESTAMP)
                  .build())

        assert config.api_key == "key-1"
        assert config.next_nonce() == NONCE
        assert config.next_timestamp() == TIMESTAMP

    def test_builder_defaults_generators(self):
        """Builder falls back to the secure default generators"""
        config = create_signing_config().api_key("key-1").secret_key(SECRET).build()
        assert validate_nonce(config.next_nonce())
        assert validate_timestamp(config.next_timestamp())

    def test_builder_requires_credentials(self):
        """Missing credentials are reported"""
        with pytest.raises(SigningError, match="API key is required"):
            create_signing_config().secret_key(SECRET).build()

        with pytest.raises(SigningError, match="Secret key is required"):
            create_signing_config().api_key("key-1").build()

    def test_config_validation(self):
        """Invalid credentials are rejected on construction"""
        with pytest.raises(SigningError) as exc_info:
            SigningConfig(api_key="", secret_key=SECRET)
        assert exc_info.value.code == SigningErrorCodes.INVALID_API_KEY

        with pytest.raises(SigningError) as exc_info:
            SigningConfig(api_key="key-1", secret_key=b"")
        assert exc_info.value.code == SigningErrorCodes.INVALID_SECRET_KEY

    def test_repr_hides_secret(self):
        """The secret key is excluded from repr"""
        assert "testsecret" not in repr(SigningConfig(api_key="key-1", secret_key=SECRET))

    def test_validate_signing_config(self):
        """Generators are exercised during validation"""
        validate_signing_config(SigningConfig(api_key="key-1", secret_key=SECRET))

        with pytest.raises(SigningError) as exc_info:
            validate_signing_config(SigningConfig(
                api_key="key-1", secret_key=SECRET, nonce_generator=lambda: ""
            ))
        assert exc_info.value.code == SigningErrorCodes.INVALID_NONCE

        with pytest.raises(SigningError) as exc_info:
            validate_signing_config(SigningConfig(
                api_key="key-1", secret_key=SECRET, timestamp_generator=lambda: "soon"
            ))
        assert exc_info.value.code == SigningErrorCodes.INVALID_TIMESTAMP

        def broken():
            raise RuntimeError("no entropy")

        with pytest.raises(SigningError, match="Nonce generator failed"):
            validate_signing_config(SigningConfig(
                api_key="key-1", secret_key=SECRET, nonce_generator=broken
            ))

        with pytest.raises(SigningError):
            validate_signing_config("not a config")
