"""Ordered route table with first-match-wins lookup.

Registration order is match priority order. There is no duplicate or
overlap detection: registering the same pattern twice keeps both, and
the first one always wins.
"""

from collections.abc import Iterable, Iterator
from typing import Any

from switchyard.middleware.protocol import Middleware
from switchyard.routing.handlers import ControllerRegistry
from switchyard.routing.pattern import compile_pattern
from switchyard.routing.route import Route, RouteMatch


class RouteTable:
    """Ordered collection of routes, matched by linear scan.

    Usage::

        table = RouteTable()
        table.register("GET", "user/{id:int}", show_user)
        match = table.find_match("GET", "user/42")
        match.params  # {"id": "42"}
    """

    __slots__ = ("_controllers", "_frozen", "_routes")

    def __init__(self, controllers: ControllerRegistry | None = None) -> None:
        self._controllers = controllers if controllers is not None else ControllerRegistry()
        self._routes: list[Route] = []
        self._frozen = False

    @property
    def controllers(self) -> ControllerRegistry:
        return self._controllers

    def register(
        self,
        method: str,
        pattern: str,
        handler: Any,
        middleware: Iterable[Middleware] = (),
    ) -> Route:
        """Compile *pattern* and append a route.

        Raises ``PatternError`` immediately for malformed patterns and
        ``ConfigurationError`` for an unusable handler.
        """
        if self._frozen:
            msg = "Cannot register routes after the table is frozen."
            raise RuntimeError(msg)

        route = Route(
            method=method,
            pattern=pattern,
            matcher=compile_pattern(pattern),
            handler=self._controllers.describe(handler),
            middleware=tuple(middleware),
        )
        self._routes.append(route)
        return route

    def freeze(self) -> None:
        """Stop accepting registrations."""
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def find_match(self, method: str, uri: str) -> RouteMatch | None:
        """Return the first route whose method and pattern match.

        The method comparison is exact and case-sensitive. ``None`` means
        no route matched, which the dispatcher answers with a 404.
        """
        for route in self._routes:
            if route.method != method:
                continue
            params = route.matcher.match(uri)
            if params is not None:
                return RouteMatch(route=route, params=params)
        return None

    @property
    def routes(self) -> tuple[Route, ...]:
        """All registered routes, in registration order."""
        return tuple(self._routes)

    def __iter__(self) -> Iterator[Route]:
        return iter(tuple(self._routes))

    def __len__(self) -> int:
        return len(self._routes)
