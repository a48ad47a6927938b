"""Request dispatch — match, build context, run the chain, emit once.

The dispatcher is the single error boundary: whatever happens inside the
middleware chain or the handler, exactly one response leaves through the
sink.

- No matching route: 404, no middleware, no handler.
- ``HTTPError`` raised anywhere in the chain: that status, error envelope.
- Any other exception (unknown controller, handler fault, a handler that
  tried to emit on its own): 500. The message is the exception text in
  debug mode and a fixed sanitised sentence otherwise.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import TYPE_CHECKING

from switchyard._internal.invoke import invoke
from switchyard.errors import HTTPError
from switchyard.http.request import RawRequest, RequestContext
from switchyard.http.response import Response, error, to_response
from switchyard.middleware.chain import compose
from switchyard.middleware.protocol import Middleware
from switchyard.routing.route import RouteMatch
from switchyard.routing.table import RouteTable
from switchyard.sink import GuardedSink, ResponseSink

if TYPE_CHECKING:
    import anyio

logger = logging.getLogger("switchyard.dispatch")

SANITIZED_MESSAGE = "Internal Server Error. Try again later."


def normalize_path(path: str) -> str:
    """Reduce a request path to the form patterns are written in.

    Drops the query string and fragment and strips surrounding slashes:
    ``"/about/Fabian/?x=1"`` -> ``"about/Fabian"``, ``"/"`` -> ``""``.
    """
    for sep in ("?", "#"):
        path = path.split(sep, 1)[0]
    return path.strip("/")


def _status_phrase(status: int) -> str:
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return f"Error {status}"


class Dispatcher:
    """Dispatches raw requests against a route table.

    ``global_middleware`` is fixed at construction and wraps every
    matched route, outermost first, around the route's own middleware.
    """

    __slots__ = ("_debug", "_global_middleware", "_table")

    def __init__(
        self,
        table: RouteTable,
        global_middleware: tuple[Middleware, ...] = (),
        *,
        debug: bool = False,
    ) -> None:
        self._table = table
        self._global_middleware = tuple(global_middleware)
        self._debug = debug

    @property
    def global_middleware(self) -> tuple[Middleware, ...]:
        return self._global_middleware

    async def dispatch(
        self,
        request: RawRequest,
        sink: ResponseSink,
        *,
        cancel_scope: anyio.CancelScope | None = None,
    ) -> Response:
        """Handle one request and emit exactly one response through *sink*.

        Returns the emitted response.
        """
        guard = sink if isinstance(sink, GuardedSink) else GuardedSink(sink)
        uri = normalize_path(request.path)
        match = self._table.find_match(request.method, uri)

        if match is None:
            logger.debug("404 %s /%s", request.method, uri)
            response = error("Not Found", 404)
        else:
            context = RequestContext(
                uri=uri,
                method=request.method,
                params=match.params,
                headers=request.headers,
                body=request.body,
                client=request.client,
                cancel_scope=cancel_scope,
            )
            with guard.sealed():
                response = await self._run(match, context)

        await guard.emit(response)
        return response

    async def _run(self, match: RouteMatch, context: RequestContext) -> Response:
        route = match.route
        logger.debug("%s /%s -> %r", context.method, context.uri, route)
        try:
            handler = self._table.controllers.resolve(route.handler)

            async def terminal(ctx: RequestContext) -> Response:
                return to_response(await invoke(handler, ctx))

            chain = compose((*self._global_middleware, *route.middleware), terminal)
            return to_response(await chain(context))
        except HTTPError as exc:
            return self._http_error(exc, context)
        except Exception as exc:
            return self._internal_error(exc, context)

    def _http_error(self, exc: HTTPError, context: RequestContext) -> Response:
        logger.debug("%d %s /%s: %s", exc.status, context.method, context.uri, exc.detail)
        response = error(exc.detail or _status_phrase(exc.status), exc.status)
        for name, value in exc.headers:
            response = response.with_header(name, value)
        return response

    def _internal_error(self, exc: Exception, context: RequestContext) -> Response:
        logger.exception("500 %s /%s", context.method, context.uri)
        if self._debug:
            message = str(exc) or type(exc).__name__
        else:
            message = SANITIZED_MESSAGE
        return error(message, 500)
