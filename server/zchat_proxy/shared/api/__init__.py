"""
Shared API - liveness and monitoring endpoints.
"""

from . import health

__all__ = ["health"]
