"""HTTP middleware."""

from agora.api.middleware.timeout import TimeoutMiddleware

__all__ = ["TimeoutMiddleware"]
