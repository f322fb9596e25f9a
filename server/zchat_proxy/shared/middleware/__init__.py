"""
Middleware components for the proxy server.
"""

from .monitoring import add_monitoring_middleware, record_upstream_request

__all__ = [
    "add_monitoring_middleware",
    "record_upstream_request"
]
