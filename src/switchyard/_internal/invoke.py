"""Invoke helpers — call sync or async handlers uniformly.

Handlers can be ``def`` or ``async def`` and may take the request
context or nothing at all. Any code that calls a user-provided handler
goes through :func:`invoke` so the checks live in exactly one place.

Sync handlers run on an anyio worker thread: a controller doing blocking
I/O must not stall unrelated dispatches on the event loop.

Usage::

    from switchyard._internal.invoke import invoke

    result = await invoke(handler, context)
"""

import functools
import inspect
from collections.abc import Callable
from typing import Any

import anyio.to_thread


def _accepts_argument(func: Callable[..., Any]) -> bool:
    """Whether *func* can be called with one positional argument."""
    try:
        sig = inspect.signature(func)
    except (TypeError, ValueError):
        return True
    params = list(sig.parameters.values())
    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params):
        return True
    positional = [
        p
        for p in params
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    return len(positional) >= 1


def _is_async(func: Callable[..., Any]) -> bool:
    if inspect.iscoroutinefunction(func):
        return True
    call = getattr(func, "__call__", None)  # noqa: B004 — callable objects
    return call is not None and inspect.iscoroutinefunction(call)


async def invoke(handler: Callable[..., Any], context: Any) -> Any:
    """Call a handler with *context* (if it takes an argument) and await it.

    Works with sync and async callables, bound methods included::

        def index():
            return {"message": "hello"}

        async def show(context):
            return {"id": context.params["id"]}
    """
    args = (context,) if _accepts_argument(handler) else ()

    if _is_async(handler):
        return await handler(*args)

    result = await anyio.to_thread.run_sync(functools.partial(handler, *args))
    if inspect.isawaitable(result):
        result = await result
    return result
