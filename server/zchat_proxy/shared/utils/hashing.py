"""
Hash generation utilities.
"""

import base64
import hashlib
import hmac


def hmac_sha256_hex(key: str, data: str) -> str:
    """
    HMAC-SHA256 over UTF-8 text, hex encoded.

    Args:
        key: Secret key text
        data: Message text

    Returns:
        Lowercase hex digest
    """
    return hmac.new(key.encode('utf-8'), data.encode('utf-8'), hashlib.sha256).hexdigest()


def base64_encode_text(text: str) -> str:
    """Standard base64 of the UTF-8 bytes of ``text``."""
    return base64.b64encode(text.encode('utf-8')).decode('ascii')
