"""
Tests for the time-bucketed upstream request signature.
"""

import base64
import hashlib
import hmac
from urllib.parse import parse_qs

import pytest

from zchat_proxy.shared.services.signing import Signer, BUCKET_WINDOW_MS


SALT = "key-@@@@)))()((9))-xxxx&&&%%%%%"
# Start of a 5 minute window
WINDOW_START = 5_666_667 * BUCKET_WINDOW_MS
REQUEST_ID = "1b4e28ba-2fa1-4d3b-a3f5-ef19b5a7633b"
USER_ID = "0f3c9a1e-7b55-4c2d-9e1a-2b3c4d5e6f70"


def _hex_hmac(key: str, data: str) -> str:
    return hmac.new(key.encode(), data.encode(), hashlib.sha256).hexdigest()


class TestSigner:
    """Signature derivation and query string construction."""

    @pytest.fixture
    def signer(self):
        return Signer(clock=lambda: WINDOW_START + 1234, request_id_factory=lambda: REQUEST_ID)

    def test_matches_reference_computation(self, signer):
        """Signature is HMAC(HMAC(salt, bucket), sorted metadata|b64 prompt|timestamp)."""
        ts = WINDOW_START + 1234
        signed = signer.sign("Hello", "tok", USER_ID, SALT)

        bucket_key = _hex_hmac(SALT, str(ts // 300000))
        prompt_b64 = base64.b64encode(b"Hello").decode()
        canonical = f"requestId,{REQUEST_ID},timestamp,{ts},user_id,{USER_ID}|{prompt_b64}|{ts}"

        assert signed.timestamp == str(ts)
        assert signed.signature == _hex_hmac(bucket_key, canonical)
        assert len(signed.signature) == 64

    def test_same_inputs_same_signature(self, signer):
        """Signing is a pure function of its inputs."""
        first = signer.sign("What is 2+2?", "tok", USER_ID, SALT)
        second = signer.sign("What is 2+2?", "tok", USER_ID, SALT)
        assert first == second

    @pytest.mark.parametrize("field,value", [
        ("prompt", "What is 2+3?"),
        ("user_id", "another-user"),
        ("salt_key", "other-secret"),
        ("timestamp", WINDOW_START + 1235),
        ("request_id", "7d444840-9dc0-41d2-bc0c-2bfe7a1c9a25"),
    ])
    def test_any_input_change_changes_signature(self, signer, field, value):
        """Varying a single signed input yields a different signature."""
        base = dict(prompt="What is 2+2?", token="tok", user_id=USER_ID, salt_key=SALT)
        reference = signer.sign(**base)
        changed = signer.sign(**{**base, field: value})
        assert changed.signature != reference.signature

    def test_token_travels_in_query_not_signature(self, signer):
        """The bearer token is echoed in the query string but not signed."""
        a = signer.sign("hi", "token-a", USER_ID, SALT)
        b = signer.sign("hi", "token-b", USER_ID, SALT)
        assert a.signature == b.signature
        assert a.url_params != b.url_params

    def test_prompt_is_trimmed_before_signing(self, signer):
        assert signer.sign("  hi \n", "tok", USER_ID, SALT).signature == signer.sign("hi", "tok", USER_ID, SALT).signature

    def test_unicode_prompt_is_utf8_base64(self, signer):
        """Non-ASCII prompts are encoded as UTF-8 before base64."""
        ts = WINDOW_START + 1234
        signed = signer.sign("héllo 世界", "tok", USER_ID, SALT)
        bucket_key = _hex_hmac(SALT, str(ts // 300000))
        prompt_b64 = base64.b64encode("héllo 世界".encode("utf-8")).decode()
        canonical = f"requestId,{REQUEST_ID},timestamp,{ts},user_id,{USER_ID}|{prompt_b64}|{ts}"
        assert signed.signature == _hex_hmac(bucket_key, canonical)

    def test_explicit_timestamp_and_request_id_override_defaults(self, signer):
        signed = signer.sign("hi", "tok", USER_ID, SALT, timestamp=42, request_id="fixed")
        assert signed.timestamp == "42"
        assert "requestId=fixed" in signed.url_params

    def test_fresh_request_id_by_default(self):
        """Without an injected factory every call gets a new UUID."""
        signer = Signer(clock=lambda: WINDOW_START)
        a = parse_qs(signer.sign("hi", "tok", USER_ID, SALT).url_params)["requestId"][0]
        b = parse_qs(signer.sign("hi", "tok", USER_ID, SALT).url_params)["requestId"][0]
        assert a != b
        assert a[14] == "4"


class TestBucketKey:
    """The per-window key rotates every 300000 ms."""

    def test_same_window_same_key(self):
        assert Signer.derive_bucket_key(SALT, WINDOW_START) == Signer.derive_bucket_key(SALT, WINDOW_START + BUCKET_WINDOW_MS - 1)

    def test_adjacent_windows_differ(self):
        assert Signer.derive_bucket_key(SALT, WINDOW_START - 1) != Signer.derive_bucket_key(SALT, WINDOW_START)
        assert Signer.derive_bucket_key(SALT, WINDOW_START) != Signer.derive_bucket_key(SALT, WINDOW_START + BUCKET_WINDOW_MS)

    def test_time_bucket_floors(self):
        assert Signer.time_bucket(0) == 0
        assert Signer.time_bucket(299_999) == 0
        assert Signer.time_bucket(300_000) == 1


class TestQueryString:
    """Query parameters sent alongside the signature."""

    def test_contains_metadata_and_browser_fields(self):
        signer = Signer(clock=lambda: WINDOW_START, request_id_factory=lambda: REQUEST_ID)
        signed = signer.sign("hi", "tok en", USER_ID, SALT)
        params = parse_qs(signed.url_params)

        assert params["timestamp"] == [str(WINDOW_START)]
        assert params["requestId"] == [REQUEST_ID]
        assert params["user_id"] == [USER_ID]
        assert params["token"] == ["tok en"]
        assert params["platform"] == ["web"]
        assert params["screen_resolution"] == ["1920x1080"]
        assert params["timezone"] == ["Europe/Paris"]
        assert params["timezone_offset"] == ["-60"]
        assert params["signature_timestamp"] == [str(WINDOW_START)]

    def test_signature_timestamp_is_last(self):
        signer = Signer(clock=lambda: WINDOW_START, request_id_factory=lambda: REQUEST_ID)
        signed = signer.sign("hi", "tok", USER_ID, SALT)
        assert signed.url_params.startswith(f"timestamp={WINDOW_START}&requestId=")
        assert signed.url_params.endswith(f"&signature_timestamp={WINDOW_START}")

    def test_canonical_metadata_sorted_by_key(self):
        assert Signer.canonicalize_metadata({"user_id": "u", "timestamp": "1", "requestId": "r"}) == "requestId,r,timestamp,1,user_id,u"
