"""Authorization-header gate.

Rejects requests without an ``Authorization`` header with a 401 error
envelope and never calls ``next``. An optional ``verify`` callable can
check the credential; by default any non-empty value passes.

The accepted credential is stored in ``context.state["authorization"]``
for inner middleware and handlers.
"""

import logging
from collections.abc import Callable

from switchyard.http.request import RequestContext
from switchyard.http.response import Response, error
from switchyard.middleware.protocol import Next

logger = logging.getLogger("switchyard.middleware")


class AuthMiddleware:
    """Require an authorization header on every request it wraps."""

    __slots__ = ("_header", "_verify")

    def __init__(
        self,
        header: str = "Authorization",
        verify: Callable[[str], bool] | None = None,
    ) -> None:
        self._header = header
        self._verify = verify

    async def handle(self, context: RequestContext, next: Next) -> Response:
        credential = context.headers.get(self._header)
        if not credential or (self._verify is not None and not self._verify(credential)):
            logger.debug("401 %s %s: missing or rejected %s", context.method, context.uri, self._header)
            return error("Unauthorized", 401).with_header("WWW-Authenticate", "Bearer")
        context.state["authorization"] = credential
        return await next(context)
