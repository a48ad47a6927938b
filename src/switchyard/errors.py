"""Switchyard exception hierarchy.

Shared across the route table, dispatcher, middleware, and handlers so
every module raises and catches the same types.

An unmatched request is not an exception: ``RouteTable.find_match()``
returns ``None`` and the dispatcher answers 404. Middleware that
short-circuits simply returns a ``Response``.
"""


class SwitchyardError(Exception):
    """Base for all switchyard-specific errors."""


class ConfigurationError(SwitchyardError):
    """Raised when app configuration is invalid.

    Startup-fatal: typically raised from ``App.register()`` or while the
    app freezes (e.g. an unknown global middleware identifier).
    """


class PatternError(ConfigurationError):
    """A route pattern has malformed placeholder syntax."""

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid route pattern {pattern!r}: {reason}")


class HandlerResolutionError(SwitchyardError):
    """A ``"Controller@method"`` reference names an unknown controller or method.

    Raised at dispatch time and converted to a 500 by the dispatcher.
    """


class ResponseDisciplineError(SwitchyardError):
    """A response was emitted outside the dispatcher, or emitted twice.

    Handlers and middleware return their response; only the dispatcher
    writes to the sink.
    """


class HTTPError(SwitchyardError):
    """An error that maps directly to an HTTP status code.

    Raised by middleware or handlers. The dispatcher catches these and
    answers with the JSON error envelope for ``status``.

    Instances must stay mutable: context managers wrapping
    ``await next(context)`` assign ``__traceback__`` as it propagates.
    """

    def __init__(
        self,
        status: int,
        detail: str = "",
        headers: tuple[tuple[str, str], ...] = (),
    ) -> None:
        super().__init__(status, detail)
        self.status = status
        self.detail = detail
        self.headers = tuple(headers)

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — no route matched the request path."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)
