"""Switchyard application class.

Mutable during setup (route, controller, and middleware registration).
Frozen on first dispatch, on ASGI lifespan startup, or by an explicit
``app.freeze()``.
"""

from __future__ import annotations

import inspect
import logging
import threading
from collections.abc import Callable, Iterable
from typing import Any

from switchyard._internal.asgi import Receive, Scope, Send
from switchyard.config import AppConfig
from switchyard.dispatch import SANITIZED_MESSAGE, Dispatcher
from switchyard.errors import ConfigurationError
from switchyard.http.request import RawRequest
from switchyard.http.response import Response, error
from switchyard.middleware.protocol import Middleware
from switchyard.middleware.registry import MiddlewareFactory, MiddlewareRegistry
from switchyard.routing.handlers import ControllerFactory, ControllerRegistry, Handler
from switchyard.routing.route import Route
from switchyard.routing.table import RouteTable
from switchyard.server.asgi import ASGISink, handle_http
from switchyard.sink import CollectingSink, ResponseSink

logger = logging.getLogger("switchyard.app")


class App:
    """The switchyard application.

    Usage::

        app = App(AppConfig(global_middleware={"rate_limit": 10}))

        @app.controller
        class AboutController:
            def name(self, context):
                return {"name": context.params["name"]}

        app.get("about/{name:string}", "AboutController@name")
        app.get("auth", "MainController@auth", middleware=[AuthMiddleware()])

    Thread safety:
        Setup is single-threaded. The freeze transition uses a Lock +
        double-check so exactly one thread builds the global middleware
        and the dispatcher, even when a threaded host calls ``dispatch()``
        concurrently on the first request.
    """

    __slots__ = (
        "_controllers",
        "_dispatcher",
        "_extra_middleware",
        "_freeze_lock",
        "_frozen",
        "_middleware_registry",
        "_shutdown_hooks",
        "_startup_hooks",
        "_table",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        controllers: ControllerRegistry | None = None,
        middleware_registry: MiddlewareRegistry | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self._controllers = controllers if controllers is not None else ControllerRegistry()
        self._middleware_registry = (
            middleware_registry if middleware_registry is not None else MiddlewareRegistry.with_defaults()
        )
        self._table = RouteTable(self._controllers)
        self._extra_middleware: list[Middleware] = []
        self._startup_hooks: list[Callable[..., Any]] = []
        self._shutdown_hooks: list[Callable[..., Any]] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()
        self._dispatcher: Dispatcher | None = None

    # -- Route registration --

    def register(
        self,
        method: str,
        pattern: str,
        handler: Any,
        middleware: Iterable[Middleware] = (),
    ) -> Route:
        """Register a route. First registered, first matched.

        ``handler`` is a callable or a ``"Controller@method"`` reference.
        ``middleware`` runs inside the global middleware, in order.
        """
        self._check_not_frozen()
        return self._table.register(method, pattern, handler, middleware)

    def route(
        self,
        pattern: str,
        *,
        methods: Iterable[str] = ("GET",),
        middleware: Iterable[Middleware] = (),
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator, once per method."""
        middleware = tuple(middleware)

        def decorator(func: Handler) -> Handler:
            for method in methods:
                self.register(method, pattern, func, middleware)
            return func

        return decorator

    def get(self, pattern: str, handler: Any, middleware: Iterable[Middleware] = ()) -> Route:
        """Register a GET route."""
        return self.register("GET", pattern, handler, middleware)

    def post(self, pattern: str, handler: Any, middleware: Iterable[Middleware] = ()) -> Route:
        """Register a POST route."""
        return self.register("POST", pattern, handler, middleware)

    def put(self, pattern: str, handler: Any, middleware: Iterable[Middleware] = ()) -> Route:
        """Register a PUT route."""
        return self.register("PUT", pattern, handler, middleware)

    def patch(self, pattern: str, handler: Any, middleware: Iterable[Middleware] = ()) -> Route:
        """Register a PATCH route."""
        return self.register("PATCH", pattern, handler, middleware)

    def delete(self, pattern: str, handler: Any, middleware: Iterable[Middleware] = ()) -> Route:
        """Register a DELETE route."""
        return self.register("DELETE", pattern, handler, middleware)

    @property
    def routes(self) -> tuple[Route, ...]:
        """All registered routes, in match priority order."""
        return self._table.routes

    # -- Controllers --

    def controller(
        self,
        factory: ControllerFactory | None = None,
        *,
        name: str | None = None,
    ) -> Any:
        """Register a controller class or factory, directly or as a decorator.

        Usage::

            @app.controller
            class MainController: ...

            @app.controller(name="Legacy")
            class LegacyController: ...

            app.controller(make_report_controller, name="Report")
        """
        self._check_not_frozen()
        if factory is None:
            return lambda f: self._controllers.register(f, name=name)
        return self._controllers.register(factory, name=name)

    # -- Middleware --

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a global middleware instance after the configured ones."""
        self._check_not_frozen()
        self._extra_middleware.append(middleware)

    def register_middleware(self, identifier: str, factory: MiddlewareFactory) -> None:
        """Make a middleware constructor available to ``config.global_middleware``."""
        self._check_not_frozen()
        self._middleware_registry.register(identifier, factory)

    # -- Lifecycle hooks --

    def on_startup(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync startup hook via decorator.

        Hooks run in registration order during ASGI lifespan startup,
        before the server begins accepting HTTP requests.
        """
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Callable[..., Any]) -> Callable[..., Any]:
        """Register an async or sync shutdown hook via decorator."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Dispatch --

    async def dispatch(self, request: RawRequest, sink: ResponseSink | None = None) -> Response:
        """Dispatch one request, emitting its response through *sink*.

        Without a sink the response is only returned. If the app cannot
        freeze (see :meth:`freeze`), every request gets a 500.
        """
        sink = sink or CollectingSink()
        try:
            dispatcher = self._ensure_frozen()
        except ConfigurationError as exc:
            response = self._configuration_error(exc)
            await sink.emit(response)
            return response
        return await dispatcher.dispatch(request, sink)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI entry point."""
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            return
        try:
            dispatcher = self._ensure_frozen()
        except ConfigurationError as exc:
            await ASGISink(send).emit(self._configuration_error(exc))
            return
        await handle_http(scope, receive, send, dispatcher)

    def _configuration_error(self, exc: ConfigurationError) -> Response:
        logger.exception("Cannot serve request: app configuration is invalid")
        message = str(exc) if self.config.debug else SANITIZED_MESSAGE
        return error(message, 500)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup, so configuration errors (e.g. an
        unknown global middleware) fail the startup instead of the first
        request.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                    await self._run_hooks(self._startup_hooks)
                except Exception as exc:
                    logger.exception("Startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                await self._run_hooks(self._shutdown_hooks)
                await send({"type": "lifespan.shutdown.complete"})
                return

    @staticmethod
    async def _run_hooks(hooks: list[Callable[..., Any]]) -> None:
        for hook in hooks:
            result = hook()
            if inspect.isawaitable(result):
                await result

    # -- Internal --

    def freeze(self) -> None:
        """Build global middleware and the dispatcher; no more registration.

        Raises ``ConfigurationError`` if a configured middleware identifier
        is unknown or its parameters are invalid.

        ASGI lifespan calls this at startup. Hosts without lifespan, and
        code driving ``dispatch()`` directly, should call it at boot:
        otherwise the error only surfaces as a logged 500 per request.
        """
        self._ensure_frozen()

    def _ensure_frozen(self) -> Dispatcher:
        """Thread-safe freeze with double-check locking."""
        if self._dispatcher is not None:
            return self._dispatcher
        with self._freeze_lock:
            if self._dispatcher is None:
                self._dispatcher = self._freeze()
            return self._dispatcher

    def _freeze(self) -> Dispatcher:
        global_middleware = (
            *self._middleware_registry.build(self.config.global_middleware),
            *self._extra_middleware,
        )
        self._table.freeze()
        self._frozen = True
        logger.debug(
            "Frozen with %d routes and %d global middleware",
            len(self._table),
            len(global_middleware),
        )
        return Dispatcher(self._table, global_middleware, debug=self.config.debug)

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has been frozen. "
                "Register routes, controllers, and middleware before the first request."
            )
            raise RuntimeError(msg)
