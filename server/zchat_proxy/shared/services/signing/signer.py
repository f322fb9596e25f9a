"""
Time-bucketed HMAC signing for upstream chat calls.

The upstream accepts a chat request only when it carries an ``X-Signature``
header computed as follows:

1. ``bucket = timestamp_ms // 300000`` (a 5 minute window).
2. ``bucket_key = hex(HMAC-SHA256(salt_key, str(bucket)))``.
3. ``canonical = "<sorted k,v metadata>|<base64 prompt>|<timestamp>"``.
4. ``signature = hex(HMAC-SHA256(bucket_key, canonical))``.

The same metadata, plus static browser fingerprint fields, also travels in
the query string.
"""

import time
import uuid
from typing import Callable, Dict, Optional
from urllib.parse import urlencode

from loguru import logger

from ...models.internal import SignedRequest
from ...utils.hashing import hmac_sha256_hex, base64_encode_text


BUCKET_WINDOW_MS = 300_000

BROWSER_INFO: Dict[str, str] = {
    "version": "0.0.1",
    "platform": "web",
    "user_agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0.0.0",
    "language": "en-US",
    "screen_resolution": "1920x1080",
    "viewport_size": "1920x1080",
    "timezone": "Europe/Paris",
    "timezone_offset": "-60",
}


def _millis_now() -> int:
    return int(time.time() * 1000)


def _new_request_id() -> str:
    return str(uuid.uuid4())


class Signer:
    """
    Computes signatures for the upstream chat endpoint.

    The clock and request-id factory are injectable so signatures can be
    reproduced in tests.
    """

    def __init__(
        self,
        clock: Callable[[], int] = _millis_now,
        request_id_factory: Callable[[], str] = _new_request_id,
    ):
        self._clock = clock
        self._request_id_factory = request_id_factory

    @staticmethod
    def time_bucket(timestamp_ms: int) -> int:
        return timestamp_ms // BUCKET_WINDOW_MS

    @classmethod
    def derive_bucket_key(cls, salt_key: str, timestamp_ms: int) -> str:
        """Per-window key; identical for every timestamp inside one 5 minute bucket."""
        return hmac_sha256_hex(salt_key, str(cls.time_bucket(timestamp_ms)))

    @staticmethod
    def canonicalize_metadata(metadata: Dict[str, str]) -> str:
        """Sort by key and flatten to ``k1,v1,k2,v2``."""
        return ",".join(f"{key},{value}" for key, value in sorted(metadata.items()))

    def sign(
        self,
        prompt: str,
        token: str,
        user_id: str,
        salt_key: str,
        timestamp: Optional[int] = None,
        request_id: Optional[str] = None,
    ) -> SignedRequest:
        """
        Sign one upstream chat call.

        Args:
            prompt: User prompt; whitespace is trimmed before encoding
            token: Upstream bearer token, echoed into the query string
            user_id: Upstream user id
            salt_key: Shared signing secret
            timestamp: Milliseconds since epoch, defaults to the clock
            request_id: Request UUID, defaults to a fresh one

        Returns:
            SignedRequest with hex signature, timestamp and query string
        """
        timestamp_ms = self._clock() if timestamp is None else timestamp
        request_id = request_id or self._request_id_factory()
        timestamp_str = str(timestamp_ms)

        bucket_key = self.derive_bucket_key(salt_key, timestamp_ms)

        metadata = {
            "timestamp": timestamp_str,
            "requestId": request_id,
            "user_id": user_id,
        }
        prompt_b64 = base64_encode_text(prompt.strip())
        data_to_sign = f"{self.canonicalize_metadata(metadata)}|{prompt_b64}|{timestamp_str}"
        signature = hmac_sha256_hex(bucket_key, data_to_sign)

        # token sits right after platform, as the browser client sends it
        params = dict(metadata)
        for key, value in BROWSER_INFO.items():
            params[key] = value
            if key == "platform":
                params["token"] = token
        url_params = f"{urlencode(params)}&signature_timestamp={timestamp_str}"

        logger.debug(f"Signed upstream request {request_id} (bucket {self.time_bucket(timestamp_ms)})")
        return SignedRequest(signature=signature, timestamp=timestamp_str, url_params=url_params)
