"""
Upstream request signing.
"""

from .signer import Signer, BUCKET_WINDOW_MS, BROWSER_INFO

__all__ = [
    "Signer",
    "BUCKET_WINDOW_MS",
    "BROWSER_INFO"
]
