"""Common middleware for Gatepass."""

from .observability import StructlogContextMiddleware

__all__ = ["StructlogContextMiddleware"]
