"""Middleware protocol and Next type alias.

A middleware is any object with a ``handle`` coroutine method::

    async def handle(self, context: RequestContext, next: Next) -> Response: ...

No base class required. The chain builder only checks the shape.

``next`` is the remainder of the chain. Call it to continue, or return a
``Response`` without calling it to short-circuit.
"""

from collections.abc import Awaitable, Callable
from typing import Protocol, TypeAlias, runtime_checkable

from switchyard.http.request import RequestContext
from switchyard.http.response import Response

# The next link in the middleware chain
Next: TypeAlias = Callable[[RequestContext], Awaitable[Response]]


@runtime_checkable
class Middleware(Protocol):
    """Protocol for switchyard middleware.

    Example::

        class Timing:
            async def handle(self, context: RequestContext, next: Next) -> Response:
                start = time.monotonic()
                response = await next(context)
                elapsed = time.monotonic() - start
                return response.with_header("X-Response-Time", f"{elapsed:.3f}")

        class RequireJSON:
            async def handle(self, context: RequestContext, next: Next) -> Response:
                if context.content_type != "application/json":
                    return error("Unsupported Media Type", 415)
                return await next(context)
    """

    async def handle(self, context: RequestContext, next: Next) -> Response: ...
