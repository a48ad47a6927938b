"""Middleware — Protocol-based, no inheritance required.

A middleware is any object with:
    async def handle(self, context: RequestContext, next: Next) -> Response

Built-in middleware:
    AuthMiddleware -- 401 unless an Authorization header is present
    RateLimitMiddleware -- sliding-window limit per client identity (429)
"""

from switchyard.middleware.auth import AuthMiddleware
from switchyard.middleware.chain import compose
from switchyard.middleware.protocol import Middleware, Next
from switchyard.middleware.rate_limit import RateLimitMiddleware, SlidingWindowStore
from switchyard.middleware.registry import MiddlewareRegistry

__all__ = [
    "AuthMiddleware",
    "Middleware",
    "MiddlewareRegistry",
    "Next",
    "RateLimitMiddleware",
    "SlidingWindowStore",
    "compose",
]
