"""
Core proxy server components.
"""

from .config import Settings
from .exceptions import (
    APIError,
    AuthenticationError,
    UpstreamError,
    UpstreamUnavailableError,
    UpstreamProtocolError
)

__all__ = [
    "Settings",
    "APIError",
    "AuthenticationError",
    "UpstreamError",
    "UpstreamUnavailableError",
    "UpstreamProtocolError"
]
