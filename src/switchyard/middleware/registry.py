"""Middleware registry — identifiers to constructors.

Global middleware is configured by identifier (``AppConfig.global_middleware``)
and built once, when the app freezes. Variants are added by registering
a constructor, not by subclassing.

Constructor parameters in the configuration are applied as:

- mapping        -> keyword arguments
- list / tuple   -> positional arguments
- ``None``       -> no arguments
- anything else  -> a single positional argument (``{"rate_limit": 10}``)
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from switchyard.errors import ConfigurationError
from switchyard.middleware.auth import AuthMiddleware
from switchyard.middleware.protocol import Middleware
from switchyard.middleware.rate_limit import RateLimitMiddleware

logger = logging.getLogger("switchyard.middleware")

MiddlewareFactory = Callable[..., Middleware]


class MiddlewareRegistry:
    """Maps middleware identifiers to constructors.

    Usage::

        registry = MiddlewareRegistry.with_defaults()
        registry.register("timing", Timing)
        chain = registry.build({"rate_limit": {"limit": 10}, "timing": None})
    """

    __slots__ = ("_factories",)

    def __init__(self, factories: Mapping[str, MiddlewareFactory] | None = None) -> None:
        self._factories: dict[str, MiddlewareFactory] = dict(factories or {})

    @classmethod
    def with_defaults(cls) -> MiddlewareRegistry:
        """A registry pre-populated with the built-in middleware."""
        return cls({"auth": AuthMiddleware, "rate_limit": RateLimitMiddleware})

    def register(self, identifier: str, factory: MiddlewareFactory) -> None:
        if identifier in self._factories:
            msg = f"Middleware {identifier!r} is already registered."
            raise ConfigurationError(msg)
        self._factories[identifier] = factory

    def __contains__(self, identifier: object) -> bool:
        return identifier in self._factories

    def create(self, identifier: str, params: Any = None) -> Middleware:
        """Build one middleware instance from its configured parameters."""
        factory = self._factories.get(identifier)
        if factory is None:
            known = ", ".join(sorted(self._factories)) or "none"
            msg = f"Unknown middleware {identifier!r} (registered: {known})."
            raise ConfigurationError(msg)

        try:
            if params is None:
                instance = factory()
            elif isinstance(params, Mapping):
                instance = factory(**params)
            elif isinstance(params, (list, tuple)):
                instance = factory(*params)
            else:
                instance = factory(params)
        except (TypeError, ValueError) as exc:
            msg = f"Cannot construct middleware {identifier!r} from {params!r}: {exc}"
            raise ConfigurationError(msg) from exc

        if not isinstance(instance, Middleware):
            msg = f"Middleware {identifier!r} built {instance!r}, which has no handle() method."
            raise ConfigurationError(msg)
        return instance

    def build(self, config: Mapping[str, Any]) -> tuple[Middleware, ...]:
        """Build every configured middleware, in configuration order."""
        chain = tuple(self.create(identifier, params) for identifier, params in config.items())
        if chain:
            logger.debug("Global middleware: %s", ", ".join(config))
        return chain
