"""HTTP middleware for the polling API: request logging and rate limiting."""
from src.server.middleware.logging import RequestLoggingMiddleware
from src.server.middleware.rate_limit import EXEMPT_PATHS, RateLimitMiddleware

__all__ = ["EXEMPT_PATHS", "RateLimitMiddleware", "RequestLoggingMiddleware"]
