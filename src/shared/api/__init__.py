from .middleware import CorrelationIdMiddleware

__all__ = ["CorrelationIdMiddleware"]
