from .correlation_id import create_correlation_id, get_correlation_id, set_correlation_id

__all__ = ["create_correlation_id", "get_correlation_id", "set_correlation_id"]
