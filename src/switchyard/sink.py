"""Response sinks — where the dispatcher writes the one response per request.

The host owns the sink: status line, headers, body, closing the request.
Switchyard follows a return-value-only discipline. Handlers and middleware
return a ``Response``; only the dispatcher emits. :class:`GuardedSink`
enforces that: it is sealed while the middleware chain runs and accepts
exactly one emission afterwards.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol

from switchyard.errors import ResponseDisciplineError
from switchyard.http.response import Response


class ResponseSink(Protocol):
    """Host-side collaborator that writes a response to the client."""

    async def emit(self, response: Response) -> None: ...


class GuardedSink:
    """Wraps a host sink so it receives exactly one response.

    Emitting while sealed (i.e. from inside the chain) or emitting a
    second time raises :class:`ResponseDisciplineError`.
    """

    __slots__ = ("_emitted", "_sealed", "_sink")

    def __init__(self, sink: ResponseSink) -> None:
        self._sink = sink
        self._sealed = False
        self._emitted: Response | None = None

    @property
    def emitted(self) -> Response | None:
        """The response that went out, if any."""
        return self._emitted

    @contextmanager
    def sealed(self) -> Iterator[None]:
        """Reject emissions for the duration of the block."""
        self._sealed = True
        try:
            yield
        finally:
            self._sealed = False

    async def emit(self, response: Response) -> None:
        if self._sealed:
            msg = "Handlers and middleware must return their response, not emit it."
            raise ResponseDisciplineError(msg)
        if self._emitted is not None:
            msg = f"A {self._emitted.status} response was already emitted for this request."
            raise ResponseDisciplineError(msg)
        self._emitted = response
        await self._sink.emit(response)


class CollectingSink:
    """Keeps every emitted response in memory.

    Used when the app is driven directly (``await app.dispatch(raw)``)
    rather than through a host.
    """

    __slots__ = ("responses",)

    def __init__(self) -> None:
        self.responses: list[Response] = []

    async def emit(self, response: Response) -> None:
        self.responses.append(response)
