"""Middleware modules."""

from .cors import EdgeCorsMiddleware

__all__ = ["EdgeCorsMiddleware"]
