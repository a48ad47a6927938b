"""Handler descriptors and controller resolution.

A route handler is either a callable (sync or async, taking the request
context or nothing) or a ``"Controller@method"`` reference. References
go through an explicit :class:`ControllerRegistry`, never a class lookup by
import path. The registry binds the controller factory when the route is
registered, if the controller is already known; only instantiation is
deferred to dispatch, where every matched request gets a fresh instance.

A reference that cannot be bound at registration time is kept lazy and
retried at dispatch. If it is still unknown then, the dispatcher sees a
:class:`HandlerResolutionError` and answers 500.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeAlias

from switchyard.errors import ConfigurationError, HandlerResolutionError

logger = logging.getLogger("switchyard.routing")

# Route handler: a user-defined callable taking the context or nothing
Handler: TypeAlias = Callable[..., Any]

# Zero-argument factory producing a controller instance
ControllerFactory: TypeAlias = Callable[[], Any]

REFERENCE_SEPARATOR = "@"


@dataclass(frozen=True, slots=True)
class ControllerRef:
    """A parsed ``"Controller@method"`` reference.

    ``factory`` is set when the controller was known at registration.
    """

    controller: str
    method: str
    factory: ControllerFactory | None = None

    @classmethod
    def parse(cls, reference: str) -> ControllerRef:
        controller, sep, method = reference.partition(REFERENCE_SEPARATOR)
        if not sep or not controller or not method or REFERENCE_SEPARATOR in method:
            msg = f"Handler reference {reference!r} must look like 'Controller@method'."
            raise ConfigurationError(msg)
        return cls(controller=controller, method=method)

    def __str__(self) -> str:
        return f"{self.controller}{REFERENCE_SEPARATOR}{self.method}"

    def __repr__(self) -> str:
        return repr(str(self))


HandlerDescriptor: TypeAlias = Handler | ControllerRef


class ControllerRegistry:
    """Maps controller identifiers to zero-argument factories.

    Usage::

        controllers = ControllerRegistry()

        @controllers.register
        class MainController:
            def index(self):
                return {"message": "hello"}

        controllers.register(AboutController, name="About")
    """

    __slots__ = ("_factories",)

    def __init__(self) -> None:
        self._factories: dict[str, ControllerFactory] = {}

    def register(
        self,
        factory: ControllerFactory,
        *,
        name: str | None = None,
    ) -> ControllerFactory:
        """Register a controller class or factory. Usable as a decorator.

        ``name`` defaults to the factory's ``__name__``.
        """
        key = name or getattr(factory, "__name__", None)
        if not key:
            msg = f"Cannot infer a controller name for {factory!r}; pass name=."
            raise ConfigurationError(msg)
        if key in self._factories:
            msg = f"Controller {key!r} is already registered."
            raise ConfigurationError(msg)
        self._factories[key] = factory
        return factory

    def get(self, name: str) -> ControllerFactory | None:
        return self._factories.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def __len__(self) -> int:
        return len(self._factories)

    def describe(self, handler: Any) -> HandlerDescriptor:
        """Turn what a route was registered with into a descriptor.

        Strings are parsed as references and bound to a known factory;
        callables pass through unchanged. Anything else is a
        configuration error.
        """
        if isinstance(handler, ControllerRef):
            return handler
        if isinstance(handler, str):
            ref = ControllerRef.parse(handler)
            factory = self._factories.get(ref.controller)
            if factory is None:
                logger.warning(
                    "Controller %r is not registered yet; %s will be resolved at dispatch.",
                    ref.controller,
                    ref,
                )
                return ref
            if isinstance(factory, type) and not callable(getattr(factory, ref.method, None)):
                logger.warning("Controller %r has no method %r.", ref.controller, ref.method)
            return ControllerRef(ref.controller, ref.method, factory)
        if callable(handler):
            return handler
        msg = f"Route handler must be callable or a 'Controller@method' string, got {handler!r}."
        raise ConfigurationError(msg)

    def resolve(self, descriptor: HandlerDescriptor) -> Handler:
        """Produce the invocable for one dispatch.

        References get a freshly constructed controller instance and
        return the bound method.
        """
        if not isinstance(descriptor, ControllerRef):
            return descriptor

        factory = descriptor.factory or self._factories.get(descriptor.controller)
        if factory is None:
            msg = f"Unknown controller {descriptor.controller!r} in handler {descriptor}."
            raise HandlerResolutionError(msg)

        instance = factory()
        bound = getattr(instance, descriptor.method, None)
        if bound is None or not callable(bound):
            msg = (
                f"Controller {descriptor.controller!r} has no callable "
                f"method {descriptor.method!r}."
            )
            raise HandlerResolutionError(msg)
        return bound
