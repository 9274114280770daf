import asyncio
import random
from urllib.parse import parse_qs

import httpx
import pytest

from nonstop_run.models.domain import Coordinates, SignalKind, TrafficSignal
from nonstop_run.services.courses.errors import SignalProviderError
from nonstop_run.services.courses.signals import (
    OverpassSignalGateway,
    SignalCache,
    SignalGateway,
    SyntheticSignalGateway,
    build_overpass_query,
    synthesize_signals,
)

CENTER = Coordinates(35.6812, 139.7671)


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class CountingSignals(SignalGateway):
    name = "counting"

    def __init__(self, signals, cache: SignalCache, fail: bool = False) -> None:
        super().__init__(cache=cache, rng=random.Random(3))
        self.signals = tuple(signals)
        self.fail = fail
        self.calls = 0

    async def _query(self, center, radius_meters):
        self.calls += 1
        if self.fail:
            raise SignalProviderError("upstream down")
        return self.signals


def _overpass_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_cache_returns_same_signals_within_ttl_without_second_call():
    clock = FakeClock()
    signals = [TrafficSignal(location=Coordinates(35.682, 139.768))]
    gateway = CountingSignals(signals, SignalCache(ttl_seconds=300, clock=clock))

    first = asyncio.run(gateway.fetch_signals(CENTER, 5000))
    clock.now += 299
    # Same key after rounding to three decimals.
    second = asyncio.run(gateway.fetch_signals(Coordinates(35.68121, 139.76714), 5000))

    assert first == second
    assert gateway.calls == 1


def test_cache_refetches_after_ttl_expiry():
    clock = FakeClock()
    gateway = CountingSignals([], SignalCache(ttl_seconds=300, clock=clock))

    asyncio.run(gateway.fetch_signals(CENTER, 5000))
    clock.now += 300
    asyncio.run(gateway.fetch_signals(CENTER, 5000))

    assert gateway.calls == 2


def test_cache_key_includes_radius():
    gateway = CountingSignals([], SignalCache(clock=FakeClock()))

    asyncio.run(gateway.fetch_signals(CENTER, 5000))
    asyncio.run(gateway.fetch_signals(CENTER, 3000))

    assert gateway.calls == 2


def test_provider_failure_falls_back_to_cached_synthetic_signals():
    gateway = CountingSignals([], SignalCache(clock=FakeClock()), fail=True)

    first = asyncio.run(gateway.fetch_signals(CENTER, 2000))
    second = asyncio.run(gateway.fetch_signals(CENTER, 2000))

    assert len(first) == 10
    assert first == second
    assert gateway.calls == 1


def test_synthetic_signals_are_deterministic_for_a_seed_and_within_radius():
    first = synthesize_signals(CENTER, 3000, random.Random(42))
    second = synthesize_signals(CENTER, 3000, random.Random(42))

    assert first == second
    assert len(first) == 15
    for signal in first:
        assert signal.kind is SignalKind.TRAFFIC_SIGNALS
        assert 30 <= signal.estimated_wait_seconds <= 90
        assert abs(signal.location.latitude - CENTER.latitude) <= 3000 / 111_000 + 1e-9


def test_synthetic_signals_empty_for_small_radius():
    assert synthesize_signals(CENTER, 150, random.Random(1)) == ()


def test_overpass_query_targets_signals_and_crossings():
    query = build_overpass_query(CENTER, 5000)

    assert '[out:json]' in query
    assert 'node["highway"="traffic_signals"](around:5000,35.6812,139.7671);' in query
    assert 'node["crossing"="traffic_signals"](around:5000,35.6812,139.7671);' in query


def test_overpass_gateway_parses_elements():
    seen_requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen_requests.append(request)
        return httpx.Response(
            200,
            json={
                "elements": [
                    {"type": "node", "id": 1, "lat": 35.6815, "lon": 139.7675, "tags": {"highway": "traffic_signals"}},
                    {"type": "node", "id": 2, "lat": 35.6820, "lon": 139.7680, "tags": {"crossing": "traffic_signals"}},
                    {"type": "node", "id": 1, "lat": 35.6815, "lon": 139.7675, "tags": {"highway": "traffic_signals"}},
                    {"type": "way", "id": 3},
                ]
            },
        )

    async def scenario():
        async with _overpass_client(handler) as client:
            gateway = OverpassSignalGateway(
                base_url="https://overpass.test/api/interpreter",
                client=client,
                cache=SignalCache(clock=FakeClock()),
                rng=random.Random(5),
            )
            return await gateway.fetch_signals(CENTER, 1000)

    signals = asyncio.run(scenario())

    assert [signal.kind for signal in signals] == [SignalKind.TRAFFIC_SIGNALS, SignalKind.CROSSING]
    assert signals[0].location == Coordinates(35.6815, 139.7675)
    assert len(seen_requests) == 1
    request = seen_requests[0]
    assert request.method == "POST"
    assert "around:1000" in parse_qs(request.content.decode())["data"][0]


@pytest.mark.parametrize(
    "handler",
    [
        lambda request: httpx.Response(504, text="gateway timeout"),
        lambda request: httpx.Response(200, text="<html>busy</html>"),
        lambda request: httpx.Response(200, json={"remark": "runtime error"}),
    ],
)
def test_overpass_gateway_falls_back_on_bad_responses(handler):
    async def scenario():
        async with _overpass_client(handler) as client:
            gateway = OverpassSignalGateway(client=client, cache=SignalCache(clock=FakeClock()), rng=random.Random(9))
            return await gateway.fetch_signals(CENTER, 1000)

    signals = asyncio.run(scenario())

    assert len(signals) == 5


def test_overpass_gateway_falls_back_on_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def scenario():
        async with _overpass_client(handler) as client:
            gateway = OverpassSignalGateway(client=client, cache=SignalCache(clock=FakeClock()), rng=random.Random(9))
            return await gateway.fetch_signals(CENTER, 1000)

    assert len(asyncio.run(scenario())) == 5


def test_synthetic_gateway_caches_its_answer():
    gateway = SyntheticSignalGateway(cache=SignalCache(clock=FakeClock()), rng=random.Random(11))

    first = asyncio.run(gateway.fetch_signals(CENTER, 1000))
    second = asyncio.run(gateway.fetch_signals(CENTER, 1000))

    assert first is second
    assert len(gateway.cache) == 1


def test_cache_drops_expired_entries_when_storing():
    clock = FakeClock()
    cache = SignalCache(ttl_seconds=300, clock=clock)
    for index in range(1000):
        cache.put((35.0, 139.0 + index / 1000, 5000.0), ())

    clock.now += 10_000
    cache.put((36.0, 140.0, 5000.0), ())

    assert len(cache) == 1
    assert cache.get((36.0, 140.0, 5000.0)) == ()


def test_cache_keeps_live_entries_when_storing():
    clock = FakeClock()
    cache = SignalCache(ttl_seconds=300, clock=clock)
    cache.put((35.0, 139.0, 5000.0), ())
    clock.now += 100
    cache.put((36.0, 140.0, 5000.0), ())

    assert len(cache) == 2


def test_overpass_query_includes_stop_nodes():
    query = build_overpass_query(CENTER, 5000)

    assert 'node["highway"="stop"](around:5000,35.6812,139.7671);' in query


def test_overpass_gateway_maps_stop_tags():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"elements": [{"type": "node", "id": 7, "lat": 35.6815, "lon": 139.7675, "tags": {"highway": "stop"}}]},
        )

    async def scenario():
        async with _overpass_client(handler) as client:
            gateway = OverpassSignalGateway(client=client, cache=SignalCache(clock=FakeClock()), rng=random.Random(5))
            return await gateway.fetch_signals(CENTER, 1000)

    signals = asyncio.run(scenario())

    assert [signal.kind for signal in signals] == [SignalKind.STOP]


def test_overpass_gateway_tolerates_non_scalar_element_ids():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "elements": [
                    {"id": [1], "lat": 35.68, "lon": 139.76},
                    {"id": {"ref": 2}, "lat": 35.69, "lon": 139.77},
                    {"type": "node", "id": 3, "lat": 35.70, "lon": 139.78},
                    {"type": "way", "id": 3, "lat": 35.71, "lon": 139.79},
                ]
            },
        )

    async def scenario():
        async with _overpass_client(handler) as client:
            gateway = OverpassSignalGateway(client=client, cache=SignalCache(clock=FakeClock()), rng=random.Random(5))
            return await gateway.fetch_signals(CENTER, 1000)

    signals = asyncio.run(scenario())

    assert [signal.location for signal in signals] == [
        Coordinates(35.68, 139.76),
        Coordinates(35.69, 139.77),
        Coordinates(35.70, 139.78),
        Coordinates(35.71, 139.79),
    ]
