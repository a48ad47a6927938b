"""HTTP response with chainable .with_*() transformation API.

Each transformation returns a new Response. The JSON envelope helpers
produce the two shapes every switchyard endpoint speaks::

    {"data": <payload>}
    {"error": {"code": <int>, "message": <str>}}
"""

from __future__ import annotations

import json as json_module
from dataclasses import dataclass, replace
from typing import Any

JSON_CONTENT_TYPE = "application/json"


@dataclass(frozen=True, slots=True)
class Response:
    """An HTTP response built through immutable transformations.

    Construct with a body, then chain ``.with_*()`` calls to set
    status and headers. Each call returns a new ``Response``.
    """

    body: bytes = b""
    status: int = 200
    content_type: str = JSON_CONTENT_TYPE
    headers: tuple[tuple[str, str], ...] = ()

    # -- Chainable transformations --

    def with_status(self, status: int) -> Response:
        """Return a new Response with a different status code."""
        return replace(self, status=status)

    def with_header(self, name: str, value: str) -> Response:
        """Return a new Response with an additional header."""
        return replace(self, headers=(*self.headers, (name, value)))

    def with_content_type(self, content_type: str) -> Response:
        """Return a new Response with a different content type."""
        return replace(self, content_type=content_type)

    # -- Accessors --

    @property
    def text(self) -> str:
        """The body decoded as UTF-8."""
        return self.body.decode("utf-8")

    def json(self) -> Any:
        """Parse the body as JSON."""
        return json_module.loads(self.body)

    def header(self, name: str, default: str | None = None) -> str | None:
        """Return the first value of header *name* (case-insensitive)."""
        lower = name.lower()
        for key, value in self.headers:
            if key.lower() == lower:
                return value
        return default


def json_response(payload: Any, status: int = 200) -> Response:
    """Serialize *payload* as-is into a JSON response."""
    body = json_module.dumps(payload).encode("utf-8")
    return Response(body=body, status=status)


def data(payload: Any, status: int = 200) -> Response:
    """Success envelope: ``{"data": payload}``."""
    return json_response({"data": payload}, status)


def error(message: str, code: int = 500, status: int | None = None) -> Response:
    """Error envelope: ``{"error": {"code": code, "message": message}}``.

    ``status`` defaults to ``code``; they differ only when an application
    uses its own error codes.
    """
    return json_response(
        {"error": {"code": code, "message": message}},
        code if status is None else status,
    )


def _is_status(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 100 <= value <= 599


def to_response(value: Any) -> Response:
    """Convert a handler's return value to a Response.

    Dispatch order:

    1. ``Response``             -> pass through
    2. ``(payload, status)``    -> convert payload, override status
                                   (``status`` an int in 100..599)
    3. ``None``                 -> ``TypeError`` (handlers must return)
    4. anything else            -> ``{"data": value}`` with 200
    """
    match value:
        case Response():
            return value
        case tuple() if len(value) == 2 and _is_status(value[1]):
            payload, status = value
            return to_response(payload).with_status(status)
        case None:
            msg = "Handler returned None; return a value or a Response."
            raise TypeError(msg)
        case _:
            try:
                return data(value)
            except TypeError as exc:
                msg = f"Cannot serialize handler result of type {type(value).__name__} as JSON."
                raise TypeError(msg) from exc
