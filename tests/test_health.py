import asyncio

import httpx
import pytest

from conftest import shopify_payload, shopify_product
from multisource.breaker import CircuitBreakerRegistry
from multisource.health import HealthMonitor


def _transport(handler):
    return httpx.MockTransport(handler)


def _routes(request: httpx.Request):
    if request.url.host == "up.test":
        assert request.url.params["q"] == "test"
        return httpx.Response(200, json=shopify_payload(shopify_product("Test card", "100")))
    if request.url.host == "empty.test":
        return httpx.Response(200, json=shopify_payload())
    return httpx.Response(503)


@pytest.mark.asyncio
async def test_check_reports_reachability(make_source):
    monitor = HealthMonitor(
        [make_source("up"), make_source("empty"), make_source("down")],
        min_reachable=2,
        probe_timeout=2.0,
        http_transport=_transport(_routes),
    )

    report = await monitor.check()

    assert report.sources == {"up": True, "empty": True, "down": False}
    assert report.details["down"] == "unreachable"
    assert report.reachable_count == 2
    assert report.overall_healthy
    assert monitor.last_report is report
    assert monitor.unreachable_sources() == ["down"]


@pytest.mark.asyncio
async def test_overall_unhealthy_below_minimum(make_source):
    monitor = HealthMonitor(
        [make_source("up"), make_source("down"), make_source("gone")],
        min_reachable=2,
        http_transport=_transport(_routes),
    )

    report = await monitor.check()

    assert report.reachable_count == 1
    assert not report.overall_healthy


@pytest.mark.asyncio
async def test_probes_never_touch_breaker(make_source, clock):
    breaker = CircuitBreakerRegistry(threshold=1, clock=clock)
    monitor = HealthMonitor([make_source("down")], http_transport=_transport(_routes))

    for _ in range(3):
        await monitor.check()

    assert breaker.snapshot("down") is None
    assert not breaker.is_open("down")


@pytest.mark.asyncio
async def test_probe_timeout(make_source):
    async def hang(request):
        await asyncio.sleep(2.0)
        return httpx.Response(200, json=shopify_payload())

    monitor = HealthMonitor(
        [make_source("hung")], probe_timeout=0.1, http_transport=httpx.MockTransport(hang)
    )
    report = await monitor.check()

    assert report.details == {"hung": "timed_out"}
    assert not report.overall_healthy


@pytest.mark.asyncio
async def test_background_schedule(make_source):
    monitor = HealthMonitor([make_source("up")], http_transport=_transport(_routes))

    monitor.start(interval_seconds=0.01)
    assert monitor.running
    for _ in range(50):
        if monitor.last_report is not None:
            break
        await asyncio.sleep(0.01)
    await monitor.stop()

    assert not monitor.running
    assert monitor.last_report.sources == {"up": True}
