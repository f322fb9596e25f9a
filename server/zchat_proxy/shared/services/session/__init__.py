"""
Per-request upstream session bootstrapping.
"""

from .bootstrapper import SessionBootstrapper

__all__ = ["SessionBootstrapper"]
