"""
Custom exceptions for the proxy server.
"""

from typing import Optional, Dict, Any
from fastapi import HTTPException, status


class APIError(HTTPException):
    """Base API error class."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class AuthenticationError(APIError):
    """Raised when the client credential is missing, malformed or wrong."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=message,
            headers={"WWW-Authenticate": "Bearer"}
        )


class UpstreamError(Exception):
    """Base class for failures talking to the upstream chat service."""


class UpstreamUnavailableError(UpstreamError):
    """Raised when the upstream service cannot be reached at all."""

    def __init__(self, message: str = "Upstream service is unreachable"):
        super().__init__(message)


class UpstreamProtocolError(UpstreamError):
    """Raised when the upstream chat call answers with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        super().__init__(f"Error {status_code}: {body}")
        self.status_code = status_code
        self.body = body
