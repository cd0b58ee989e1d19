from .correlation_id_middleware import CorrelationIdMiddleware

__all__ = ["CorrelationIdMiddleware"]
