"""Middleware chain composition.

``compose([A, B], handler)`` yields a callable that runs
``A.handle -> B.handle -> handler``. It is built right to left: the
terminal handler is wrapped by the last middleware first, so the first
entry ends up outermost.
"""

from collections.abc import Iterable

from switchyard.http.request import RequestContext
from switchyard.http.response import Response
from switchyard.middleware.protocol import Middleware, Next


def _link(middleware: Middleware, inner: Next) -> Next:
    async def call(context: RequestContext) -> Response:
        return await middleware.handle(context, inner)

    return call


def compose(middleware: Iterable[Middleware], terminal: Next) -> Next:
    """Wrap *terminal* in *middleware*, first element outermost.

    The result returns the terminal handler's response, or the response
    of the first middleware that did not call ``next``.
    """
    handler = terminal
    for mw in reversed(tuple(middleware)):
        handler = _link(mw, handler)
    return handler
