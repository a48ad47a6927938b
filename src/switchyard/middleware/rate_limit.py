"""Sliding-window rate limiting.

``RateLimitMiddleware`` allows ``limit`` requests per identity within a
rolling ``window_seconds`` window and answers 429 beyond that. The
per-identity state lives in an injectable :class:`SlidingWindowStore`,
which is safe to share between threads and dispatches: global middleware
instances are built once and reused for every request.

Stale identities (no hit within the window) are evicted by
``evict_stale()``, which the store also runs on its own every
``sweep_every`` hits.
"""

import logging
import math
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass

from switchyard.http.request import RequestContext
from switchyard.http.response import Response, error
from switchyard.middleware.protocol import Next

logger = logging.getLogger("switchyard.middleware")

RATE_LIMIT_MESSAGE = "Rate limit exceeded. Please wait and try again."


@dataclass(frozen=True, slots=True)
class RateDecision:
    """Outcome of one ``SlidingWindowStore.hit()``."""

    allowed: bool
    remaining: int
    retry_after: float = 0.0


class _Window:
    """Timestamps for one identity, guarded by its own lock."""

    __slots__ = ("evicted", "hits", "lock")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.hits: deque[float] = deque()
        self.evicted = False


class SlidingWindowStore:
    """Thread-safe, per-identity sliding window of request timestamps.

    The table lock only guards creating and evicting windows; counting
    happens under the identity's own lock, so unrelated identities do not
    contend.
    """

    __slots__ = ("_clock", "_lock", "_since_sweep", "_sweep_every", "_windows", "window_seconds")

    def __init__(
        self,
        window_seconds: float = 60.0,
        *,
        clock: Callable[[], float] = time.monotonic,
        sweep_every: int = 1024,
    ) -> None:
        if window_seconds <= 0:
            msg = f"window_seconds must be > 0, got {window_seconds}"
            raise ValueError(msg)
        self.window_seconds = window_seconds
        self._clock = clock
        self._sweep_every = sweep_every
        self._since_sweep = 0
        self._lock = threading.Lock()
        self._windows: dict[str, _Window] = {}

    def _window_for(self, key: str) -> _Window:
        with self._lock:
            window = self._windows.get(key)
            if window is None:
                window = self._windows[key] = _Window()
            self._since_sweep += 1
            sweep = self._since_sweep >= self._sweep_every
            if sweep:
                self._since_sweep = 0
        if sweep:
            self.evict_stale()
        return window

    def hit(self, key: str, limit: int) -> RateDecision:
        """Record one request for *key* unless it would exceed *limit*.

        Rejected requests are not recorded, so a client that keeps
        retrying is let through as soon as its oldest hit leaves the
        window.
        """
        while True:
            window = self._window_for(key)
            with window.lock:
                if window.evicted:
                    continue
                now = self._clock()
                hits = window.hits
                while hits and now - hits[0] >= self.window_seconds:
                    hits.popleft()
                if len(hits) >= limit:
                    retry_after = self.window_seconds - (now - hits[0]) if hits else self.window_seconds
                    return RateDecision(allowed=False, remaining=0, retry_after=retry_after)
                hits.append(now)
                return RateDecision(allowed=True, remaining=limit - len(hits))

    def evict_stale(self) -> int:
        """Drop identities with no hit inside the window. Returns the count."""
        now = self._clock()
        evicted = 0
        with self._lock:
            for key, window in list(self._windows.items()):
                with window.lock:
                    if window.hits and now - window.hits[-1] < self.window_seconds:
                        continue
                    window.evicted = True
                del self._windows[key]
                evicted += 1
        if evicted:
            logger.debug("Evicted %d stale rate-limit identities", evicted)
        return evicted

    def reset(self, key: str | None = None) -> None:
        """Forget one identity, or all of them."""
        with self._lock:
            keys = [key] if key is not None else list(self._windows)
            for k in keys:
                window = self._windows.pop(k, None)
                if window is not None:
                    with window.lock:
                        window.evicted = True

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._windows


class RateLimitMiddleware:
    """Allow ``limit`` requests per identity per ``window_seconds``.

    The identity is the first hop of ``key_header`` (``X-Forwarded-For``
    by default), then the client address, then ``"unknown"``. Pass a
    shared ``store`` to let several middleware instances count together;
    its window then wins over ``window_seconds``.
    """

    __slots__ = ("_key_header", "_limit", "_store")

    def __init__(
        self,
        limit: int = 10,
        window_seconds: float = 60.0,
        *,
        store: SlidingWindowStore | None = None,
        key_header: str | None = "x-forwarded-for",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit < 1:
            msg = f"limit must be >= 1, got {limit}"
            raise ValueError(msg)
        self._limit = limit
        self._store = store if store is not None else SlidingWindowStore(window_seconds, clock=clock)
        self._key_header = key_header

    @property
    def store(self) -> SlidingWindowStore:
        return self._store

    def _identity_key(self, context: RequestContext) -> str:
        if self._key_header:
            raw = context.headers.get(self._key_header)
            if raw:
                # Comma-separated proxy chain, first hop is the client
                forwarded = raw.split(",")[0].strip()
                if forwarded:
                    return forwarded
        if context.client:
            return context.client[0]
        return "unknown"

    async def handle(self, context: RequestContext, next: Next) -> Response:
        key = self._identity_key(context)
        decision = self._store.hit(key, self._limit)
        if not decision.allowed:
            logger.debug("429 %s %s: %s over %d requests", context.method, context.uri, key, self._limit)
            return (
                error(RATE_LIMIT_MESSAGE, 429)
                .with_header("Retry-After", str(max(1, math.ceil(decision.retry_after))))
                .with_header("X-RateLimit-Limit", str(self._limit))
                .with_header("X-RateLimit-Remaining", "0")
            )
        response = await next(context)
        return response.with_header("X-RateLimit-Limit", str(self._limit)).with_header(
            "X-RateLimit-Remaining", str(decision.remaining)
        )
