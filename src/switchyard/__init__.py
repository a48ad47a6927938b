"""Switchyard — a small HTTP request router with composable middleware.

Matches requests by method and URL pattern, captures typed path
parameters, runs global and per-route middleware outermost-first, and
answers with JSON.

Basic usage::

    from switchyard import App

    app = App()

    @app.route("user/{id:int}")
    def show_user(context):
        return {"id": context.params["id"]}

Serve it with any ASGI server, or drive it directly::

    response = await app.dispatch(RawRequest.build("GET", "/user/42"))
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "AuthMiddleware",
    "ConfigurationError",
    "HTTPError",
    "HandlerResolutionError",
    "Middleware",
    "Next",
    "NotFound",
    "PatternError",
    "RateLimitMiddleware",
    "RawRequest",
    "RequestContext",
    "Response",
    "SwitchyardError",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import switchyard`` fast while providing a clean top-level API.
    """
    if name == "App":
        from switchyard.app import App

        return App

    if name == "AppConfig":
        from switchyard.config import AppConfig

        return AppConfig

    if name in ("RawRequest", "RequestContext"):
        from switchyard.http import request

        return getattr(request, name)

    if name == "Response":
        from switchyard.http.response import Response

        return Response

    if name in ("Middleware", "Next"):
        from switchyard.middleware import protocol

        return getattr(protocol, name)

    if name == "AuthMiddleware":
        from switchyard.middleware.auth import AuthMiddleware

        return AuthMiddleware

    if name == "RateLimitMiddleware":
        from switchyard.middleware.rate_limit import RateLimitMiddleware

        return RateLimitMiddleware

    if name in (
        "ConfigurationError",
        "HTTPError",
        "HandlerResolutionError",
        "NotFound",
        "PatternError",
        "SwitchyardError",
    ):
        from switchyard import errors

        return getattr(errors, name)

    msg = f"module 'switchyard' has no attribute {name!r}"
    raise AttributeError(msg)
