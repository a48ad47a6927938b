"""Tests for the sliding-window rate limiter."""

import threading

import pytest

from switchyard.dispatch import Dispatcher
from switchyard.http.request import RawRequest
from switchyard.middleware.rate_limit import (
    RATE_LIMIT_MESSAGE,
    RateLimitMiddleware,
    SlidingWindowStore,
)
from switchyard.routing.table import RouteTable
from switchyard.sink import CollectingSink


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestSlidingWindowStore:
    def test_allows_up_to_limit(self) -> None:
        store = SlidingWindowStore(60, clock=FakeClock())
        decisions = [store.hit("a", 3) for _ in range(4)]
        assert [d.allowed for d in decisions] == [True, True, True, False]
        assert [d.remaining for d in decisions] == [2, 1, 0, 0]

    def test_retry_after_counts_down(self) -> None:
        clock = FakeClock()
        store = SlidingWindowStore(60, clock=clock)
        store.hit("a", 1)
        clock.advance(20)
        decision = store.hit("a", 1)
        assert not decision.allowed
        assert decision.retry_after == pytest.approx(40)

    def test_window_slides(self) -> None:
        clock = FakeClock()
        store = SlidingWindowStore(60, clock=clock)
        store.hit("a", 2)
        clock.advance(30)
        store.hit("a", 2)
        assert not store.hit("a", 2).allowed
        clock.advance(30)
        # The first hit is now exactly one window old
        assert store.hit("a", 2).allowed
        assert not store.hit("a", 2).allowed

    def test_rejected_hits_are_not_recorded(self) -> None:
        clock = FakeClock()
        store = SlidingWindowStore(60, clock=clock)
        store.hit("a", 1)
        for _ in range(5):
            clock.advance(10)
            assert not store.hit("a", 1).allowed
        clock.advance(10)
        assert store.hit("a", 1).allowed

    def test_identities_are_independent(self) -> None:
        store = SlidingWindowStore(60, clock=FakeClock())
        assert store.hit("a", 1).allowed
        assert not store.hit("a", 1).allowed
        assert store.hit("b", 1).allowed

    def test_evict_stale(self) -> None:
        clock = FakeClock()
        store = SlidingWindowStore(60, clock=clock)
        store.hit("old", 5)
        clock.advance(45)
        store.hit("fresh", 5)
        clock.advance(20)
        assert store.evict_stale() == 1
        assert "old" not in store
        assert "fresh" in store
        assert len(store) == 1

    def test_automatic_sweep(self) -> None:
        clock = FakeClock()
        store = SlidingWindowStore(60, clock=clock, sweep_every=3)
        store.hit("a", 5)
        store.hit("b", 5)
        clock.advance(61)
        store.hit("c", 5)
        assert "a" not in store
        assert "b" not in store
        assert "c" in store

    def test_reset(self) -> None:
        store = SlidingWindowStore(60, clock=FakeClock())
        store.hit("a", 1)
        store.hit("b", 1)
        store.reset("a")
        assert store.hit("a", 1).allowed
        store.reset()
        assert len(store) == 0

    def test_invalid_window(self) -> None:
        with pytest.raises(ValueError, match="window_seconds"):
            SlidingWindowStore(0)

    def test_invalid_limit(self) -> None:
        with pytest.raises(ValueError, match="limit"):
            RateLimitMiddleware(limit=0)

    def test_concurrent_hits_never_exceed_limit(self) -> None:
        store = SlidingWindowStore(60, sweep_every=7)
        allowed = []
        lock = threading.Lock()

        def worker() -> None:
            for _ in range(50):
                decision = store.hit("shared", 100)
                if decision.allowed:
                    with lock:
                        allowed.append(decision)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(allowed) == 100


def build_dispatcher(middleware: RateLimitMiddleware) -> Dispatcher:
    table = RouteTable()
    table.register("GET", "", lambda: {"message": "hello"})
    return Dispatcher(table, (middleware,))


async def get(dispatcher: Dispatcher, **kwargs):
    sink = CollectingSink()
    return await dispatcher.dispatch(RawRequest.build("GET", "/", **kwargs), sink)


@pytest.mark.anyio
class TestRateLimitMiddleware:
    async def test_limit_then_429(self) -> None:
        dispatcher = build_dispatcher(RateLimitMiddleware(limit=3, clock=FakeClock()))
        statuses = [(await get(dispatcher)).status for _ in range(4)]
        assert statuses == [200, 200, 200, 429]

    async def test_429_envelope_and_headers(self) -> None:
        clock = FakeClock()
        dispatcher = build_dispatcher(RateLimitMiddleware(limit=1, clock=clock))
        await get(dispatcher)
        clock.advance(15.5)
        response = await get(dispatcher)
        assert response.status == 429
        assert response.json() == {"error": {"code": 429, "message": RATE_LIMIT_MESSAGE}}
        assert response.header("Retry-After") == "45"
        assert response.header("X-RateLimit-Limit") == "1"
        assert response.header("X-RateLimit-Remaining") == "0"

    async def test_success_headers(self) -> None:
        dispatcher = build_dispatcher(RateLimitMiddleware(limit=10, clock=FakeClock()))
        response = await get(dispatcher)
        assert response.header("X-RateLimit-Limit") == "10"
        assert response.header("X-RateLimit-Remaining") == "9"

    async def test_window_reset(self) -> None:
        clock = FakeClock()
        dispatcher = build_dispatcher(RateLimitMiddleware(limit=1, window_seconds=60, clock=clock))
        assert (await get(dispatcher)).status == 200
        assert (await get(dispatcher)).status == 429
        clock.advance(60)
        assert (await get(dispatcher)).status == 200

    async def test_forwarded_for_identity(self) -> None:
        dispatcher = build_dispatcher(RateLimitMiddleware(limit=1, clock=FakeClock()))
        first = await get(dispatcher, headers={"X-Forwarded-For": "1.2.3.4, 10.0.0.1"})
        second = await get(dispatcher, headers={"X-Forwarded-For": "1.2.3.4"})
        other = await get(dispatcher, headers={"X-Forwarded-For": "5.6.7.8"})
        assert (first.status, second.status, other.status) == (200, 429, 200)

    async def test_client_address_identity(self) -> None:
        middleware = RateLimitMiddleware(limit=1, clock=FakeClock())
        dispatcher = build_dispatcher(middleware)
        await get(dispatcher, client=("9.9.9.9", 1))
        assert "9.9.9.9" in middleware.store
        await get(dispatcher)
        assert "unknown" in middleware.store

    async def test_shared_store(self) -> None:
        store = SlidingWindowStore(60, clock=FakeClock())
        a = build_dispatcher(RateLimitMiddleware(limit=1, store=store))
        b = build_dispatcher(RateLimitMiddleware(limit=1, store=store))
        assert (await get(a)).status == 200
        assert (await get(b)).status == 429
