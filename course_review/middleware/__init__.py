"""
Middleware modules for the Course Review Service
"""

from .correlation_id import CorrelationIdMiddleware

__all__ = ["CorrelationIdMiddleware"]
