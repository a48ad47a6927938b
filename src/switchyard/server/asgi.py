"""ASGI host adapter — translates ASGI scope/messages to switchyard types.

The only component that touches raw ASGI directly. Reads the request
into a ``RawRequest``, dispatches it, and writes the response through
``ASGISink`` as ``http.response.start`` + ``http.response.body``.
"""

import anyio

from switchyard._internal.asgi import Receive, Scope, Send
from switchyard.dispatch import Dispatcher
from switchyard.http.request import RawRequest
from switchyard.http.response import Response


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    # RFC: 1xx, 204, and 304 responses do not include a message body.
    return not (100 <= status < 200 or status in {204, 304})


class ASGISink:
    """Response sink writing to an ASGI ``send`` callable."""

    __slots__ = ("_send",)

    def __init__(self, send: Send) -> None:
        self._send = send

    async def emit(self, response: Response) -> None:
        raw_headers: list[tuple[bytes, bytes]] = [
            (b"content-type", response.content_type.encode("latin-1")),
        ]
        for name, value in response.headers:
            raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))

        body = response.body if _body_allowed(response.status) else b""
        raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

        await self._send(
            {
                "type": "http.response.start",
                "status": response.status,
                "headers": raw_headers,
            }
        )
        await self._send(
            {
                "type": "http.response.body",
                "body": body,
            }
        )


async def handle_http(scope: Scope, receive: Receive, send: Send, dispatcher: Dispatcher) -> None:
    """Process a single HTTP request through the dispatcher."""
    request = await RawRequest.from_asgi(scope, receive)
    with anyio.CancelScope() as cancel_scope:
        await dispatcher.dispatch(request, ASGISink(send), cancel_scope=cancel_scope)
