"""Async test client for switchyard applications.

Sends requests through the ASGI interface directly, without sockets or HTTP
parsing, and returns the same ``Response`` type the handlers build.
"""

from __future__ import annotations

import json as json_module
from typing import Any

from switchyard.app import App
from switchyard.http.response import Response


class TestClient:
    __test__ = False  # Tell pytest this is not a test class
    """Async test client for switchyard applications.

    Usage::

        async with TestClient(app) as client:
            response = await client.get("/about/Fabian")
            assert response.status == 200
            assert response.json() == {"data": {"name": "Fabian"}}

    Entering the client freezes the app and runs its startup hooks;
    leaving it runs the shutdown hooks, as the ASGI lifespan protocol
    does under a real server.
    """

    __slots__ = ("app", "client")

    def __init__(self, app: App, *, client: tuple[str, int] = ("127.0.0.1", 50000)) -> None:
        self.app = app
        self.client = client

    async def __aenter__(self) -> TestClient:
        self.app.freeze()
        await self.app._run_hooks(self.app._startup_hooks)
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.app._run_hooks(self.app._shutdown_hooks)

    async def get(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        """Send a GET request."""
        return await self.request("GET", path, headers=headers)

    async def post(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
    ) -> Response:
        """Send a POST request, optionally JSON-encoding *json* as the body."""
        extra_headers: dict[str, str] = {}
        request_body = body or b""
        if json is not None:
            request_body = json_module.dumps(json).encode("utf-8")
            extra_headers["content-type"] = "application/json"
        merged = {**extra_headers, **(headers or {})}
        return await self.request("POST", path, headers=merged, body=request_body)

    async def put(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> Response:
        """Send a PUT request."""
        return await self.request("PUT", path, headers=headers, body=body)

    async def delete(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        """Send a DELETE request."""
        return await self.request("DELETE", path, headers=headers)

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> Response:
        """Send an arbitrary request through the ASGI app."""
        if "?" in path:
            path_part, query_string = path.split("?", 1)
        else:
            path_part, query_string = path, ""

        raw_headers = [
            (name.lower().encode("latin-1"), value.encode("latin-1"))
            for name, value in (headers or {}).items()
        ]
        scope: dict[str, Any] = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": method,
            "path": path_part,
            "raw_path": path_part.encode("latin-1"),
            "query_string": query_string.encode("latin-1"),
            "root_path": "",
            "headers": raw_headers,
            "server": ("testserver", 80),
            "client": self.client,
        }

        body_sent = False

        async def receive() -> dict[str, Any]:
            nonlocal body_sent
            if body_sent:
                return {"type": "http.disconnect"}
            body_sent = True
            return {"type": "http.request", "body": body or b"", "more_body": False}

        messages: list[dict[str, Any]] = []

        async def send(message: dict[str, Any]) -> None:
            messages.append(dict(message))

        await self.app(scope, receive, send)
        return _build_response(messages)


def _build_response(messages: list[dict[str, Any]]) -> Response:
    starts = [m for m in messages if m["type"] == "http.response.start"]
    if len(starts) != 1:
        msg = f"Expected exactly one http.response.start, got {len(starts)}"
        raise AssertionError(msg)
    start = starts[0]

    content_type = ""
    headers: list[tuple[str, str]] = []
    for raw_name, raw_value in start.get("headers", []):
        name = raw_name.decode("latin-1")
        value = raw_value.decode("latin-1")
        if name == "content-type":
            content_type = value
        elif name != "content-length":
            headers.append((name, value))

    body = b"".join(m.get("body", b"") for m in messages if m["type"] == "http.response.body")
    return Response(
        body=body,
        status=start["status"],
        content_type=content_type,
        headers=tuple(headers),
    )
