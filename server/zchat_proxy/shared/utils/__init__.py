"""
Utility modules for the proxy server.
"""

from .hashing import hmac_sha256_hex, base64_encode_text

__all__ = [
    "hmac_sha256_hex",
    "base64_encode_text"
]
