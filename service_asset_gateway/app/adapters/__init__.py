"""
Object store adapters for the asset gateway.
"""

from .object_store import ObjectStore

__all__ = ["ObjectStore"]
