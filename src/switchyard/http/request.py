"""Inbound request descriptor and per-dispatch request context.

``RawRequest`` is what the host hands to the dispatcher: path, method,
headers, body. ``RequestContext`` is what the dispatcher builds after a
route matched and passes by reference through the middleware chain into
the handler. Neither outlives the request.
"""

from __future__ import annotations

import json as json_module
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from switchyard.http.headers import Headers

if TYPE_CHECKING:
    import anyio

    from switchyard._internal.asgi import Receive, Scope


@dataclass(frozen=True, slots=True)
class RawRequest:
    """An inbound request as supplied by the host.

    The router never parses HTTP wire format; the host does that and
    hands over already-split fields. ``path`` may carry a query string,
    which the dispatcher drops before matching.
    """

    path: str
    method: str
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""
    client: tuple[str, int] | None = None

    @classmethod
    def build(
        cls,
        method: str,
        path: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: bytes = b"",
        client: tuple[str, int] | None = None,
    ) -> RawRequest:
        """Convenience constructor taking a plain header dict."""
        return cls(
            path=path,
            method=method,
            headers=Headers.from_mapping(headers),
            body=body,
            client=client,
        )

    @classmethod
    async def from_asgi(cls, scope: Scope, receive: Receive) -> RawRequest:
        """Create a RawRequest from an ASGI scope, reading the full body."""
        chunks: list[bytes] = []
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                break
            body = message.get("body", b"")
            if body:
                chunks.append(body)
            if not message.get("more_body", False):
                break
        client = scope.get("client")
        return cls(
            path=scope["path"],
            method=scope["method"],
            headers=Headers.from_raw(scope.get("headers", ())),
            body=b"".join(chunks),
            client=tuple(client) if client else None,
        )


@dataclass(frozen=True, slots=True)
class RequestContext:
    """The request as seen by middleware and handlers.

    Metadata is frozen. ``params`` holds the path parameters captured by
    the matched pattern, always as strings (``{id:int}`` constrains the
    characters, not the type). ``state`` is a per-request dict that
    middleware may fill for inner links (e.g. an authenticated user).

    ``cancel_scope`` is threaded in by hosts that support cancellation.
    The router itself never cancels; long-running handlers may check
    ``cancel_scope.cancel_called``.
    """

    uri: str
    method: str
    params: Mapping[str, str]
    headers: Headers
    body: bytes
    client: tuple[str, int] | None = None
    cancel_scope: anyio.CancelScope | None = None
    state: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def content_type(self) -> str | None:
        """The Content-Type header value."""
        return self.headers.get("content-type")

    def text(self) -> str:
        """The body decoded as UTF-8."""
        return self.body.decode("utf-8")

    def json(self) -> Any:
        """Parse the body as JSON."""
        return json_module.loads(self.body)
