"""Route and RouteMatch frozen dataclasses."""

from dataclasses import dataclass

from switchyard.middleware.protocol import Middleware
from switchyard.routing.handlers import HandlerDescriptor
from switchyard.routing.pattern import Matcher


@dataclass(frozen=True, slots=True)
class Route:
    """A frozen route definition.

    Created by ``RouteTable.register()`` and never mutated afterwards.
    ``middleware`` runs inside any global middleware, in order.
    """

    method: str
    pattern: str
    matcher: Matcher
    handler: HandlerDescriptor
    middleware: tuple[Middleware, ...] = ()

    def __repr__(self) -> str:
        return f"Route({self.method} {self.pattern!r} -> {self.handler!r})"


@dataclass(frozen=True, slots=True)
class RouteMatch:
    """Result of a successful route match."""

    route: Route
    params: dict[str, str]
