"""
Client modules for external services.
"""

from .upstream import UpstreamClient

__all__ = ["UpstreamClient"]
