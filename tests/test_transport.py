import asyncio

import httpx
import pytest

from conftest import FALLBACK_BASE, PROXY_BASE, shopify_payload, shopify_product
from multisource.adapters import MagicSurAdapter, ShopifySuggestAdapter
from multisource.transport import (
    DirectTier,
    FallbackServiceTier,
    ProxyRelayTier,
    RawResponse,
    TierChain,
    TierFailure,
    attempt_tier,
    detect_block,
)

ADAPTER = ShopifySuggestAdapter(
    "paytowin", "https://www.paytowin.cl", fallback_route="paytowin-direct"
)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)


def test_tier_requests():
    proxy = ProxyRelayTier(PROXY_BASE).build_request(ADAPTER, "bolt")
    assert proxy.method == "GET"
    assert proxy.url == f"{PROXY_BASE}/paytowin"
    assert proxy.params == {"q": "bolt"}

    direct = DirectTier().build_request(ADAPTER, "bolt")
    assert direct.url == "https://www.paytowin.cl/search/suggest.json"
    assert direct.params["resources[type]"] == "product"

    fallback = FallbackServiceTier(FALLBACK_BASE).build_request(ADAPTER, "bolt")
    assert fallback.method == "POST"
    assert fallback.url == f"{FALLBACK_BASE}/api/paytowin-direct"
    assert fallback.json == {"cardName": "bolt"}


@pytest.mark.asyncio
async def test_first_valid_tier_wins_and_later_tiers_are_skipped(three_tiers):
    seen = []

    def handler(request: httpx.Request):
        seen.append(request.url.host)
        if request.url.host == "relay.test":
            return httpx.Response(502, text="bad gateway")
        return httpx.Response(200, json=shopify_payload(shopify_product("Bolt", "1000")))

    async with _client(handler) as client:
        result = await TierChain(three_tiers).run(client, ADAPTER, "bolt")

    assert result.succeeded
    assert result.response.tier == "direct"
    assert result.attempts == ["proxy", "direct"]
    assert seen == ["relay.test", "www.paytowin.cl"]
    assert [failure.kind for failure in result.failures] == ["http_error"]


@pytest.mark.asyncio
async def test_wrong_content_type_falls_through(three_tiers):
    def handler(request: httpx.Request):
        if request.url.host == "relay.test":
            return httpx.Response(200, text="<html><body>ok</body></html>", headers={"content-type": "text/html"})
        if request.url.host == "www.paytowin.cl":
            return httpx.Response(200, text="{not json", headers={"content-type": "application/json"})
        return httpx.Response(200, json=shopify_payload())

    async with _client(handler) as client:
        result = await TierChain(three_tiers).run(client, ADAPTER, "bolt")

    assert result.response.tier == "fallback"
    assert [failure.kind for failure in result.failures] == ["invalid_response", "invalid_response"]
    assert result.failures[1].message.startswith("Unparseable JSON body")


@pytest.mark.asyncio
async def test_captcha_redirect_is_blocked_and_stops_chain(three_tiers):
    seen = []

    def handler(request: httpx.Request):
        seen.append(str(request.url))
        if request.url.host == "relay.test":
            return httpx.Response(503, text="unavailable")
        if request.url.path == "/search/suggest.json":
            return httpx.Response(302, headers={"location": "https://www.paytowin.cl/.well-known/sgcaptcha/?r=%2F"})
        return httpx.Response(200, text="<html>Captcha detected</html>", headers={"content-type": "text/html"})

    async with _client(handler) as client:
        result = await TierChain(three_tiers).run(client, ADAPTER, "bolt")

    assert not result.succeeded
    assert result.failures[-1].kind == "blocked"
    assert result.attempts == ["proxy", "direct"]
    assert not any(FALLBACK_BASE in url for url in seen)


@pytest.mark.asyncio
async def test_rate_limit_stops_chain(three_tiers):
    def handler(request: httpx.Request):
        return httpx.Response(429, json={"error": "slow down"})

    async with _client(handler) as client:
        result = await TierChain(three_tiers).run(client, ADAPTER, "bolt")

    assert result.attempts == ["proxy"]
    assert result.failures[0].kind == "rate_limited"
    assert result.failures[0].is_terminal


@pytest.mark.asyncio
async def test_tier_timeout_moves_to_next_tier():
    async def handler(request: httpx.Request):
        if request.url.host == "relay.test":
            await asyncio.sleep(1.0)
        return httpx.Response(200, json=shopify_payload())

    tiers = (ProxyRelayTier(PROXY_BASE, timeout_seconds=0.05), DirectTier(timeout_seconds=1.0))
    async with _client(handler) as client:
        result = await TierChain(tiers).run(client, ADAPTER, "bolt")

    assert result.response.tier == "direct"
    assert result.failures[0].kind == "timeout"


@pytest.mark.asyncio
async def test_chain_respects_deadline():
    async def handler(request: httpx.Request):
        await asyncio.sleep(1.0)
        return httpx.Response(200, json=shopify_payload())

    tiers = (DirectTier(timeout_seconds=5.0), DirectTier(timeout_seconds=5.0))
    loop = asyncio.get_running_loop()
    started = loop.time()
    async with _client(handler) as client:
        result = await TierChain(tiers).run(client, ADAPTER, "bolt", deadline=started + 0.1)

    assert loop.time() - started < 0.5
    assert not result.succeeded
    assert {failure.kind for failure in result.failures} == {"timeout"}


@pytest.mark.asyncio
async def test_connection_error_is_unreachable():
    def handler(request: httpx.Request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        outcome = await attempt_tier(client, DirectTier(), ADAPTER, "bolt", timeout=1.0)

    assert isinstance(outcome, TierFailure)
    assert outcome.kind == "unreachable"


@pytest.mark.asyncio
async def test_html_source_accepts_html():
    adapter = MagicSurAdapter("magicsur", "https://www.cartasmagicsur.cl")

    def handler(request: httpx.Request):
        assert request.method == "POST"
        assert b"action=aws_action" in request.content
        return httpx.Response(200, text="<div class='aws_no_result'></div>", headers={"content-type": "text/html; charset=UTF-8"})

    async with _client(handler) as client:
        outcome = await attempt_tier(client, DirectTier(), adapter, "birds", timeout=1.0)

    assert isinstance(outcome, RawResponse)
    assert "aws_no_result" in outcome.payload


def test_detect_block_ignores_clean_json():
    request = httpx.Request("GET", "https://www.paytowin.cl/search/suggest.json")
    response = httpx.Response(200, json={"captcha": "field in a product"}, request=request)
    assert detect_block(response, "json") is None


def test_detect_block_on_challenge_body():
    request = httpx.Request("GET", "https://www.paytowin.cl/search/suggest.json")
    response = httpx.Response(
        403,
        text="<title>Just a moment...</title>",
        headers={"content-type": "text/html"},
        request=request,
    )
    assert "Challenge markup" in detect_block(response, "json")


@pytest.mark.asyncio
async def test_fallback_answers_in_its_own_shape(three_tiers):
    def handler(request: httpx.Request):
        if request.url.host == "fallback.test":
            return httpx.Response(200, json=[{"cardName": "Bolt", "price": "$1.000 CLP", "inStock": True}])
        return httpx.Response(503)

    async with _client(handler) as client:
        result = await TierChain(three_tiers).run(client, ADAPTER, "bolt")

    assert result.response.tier == "fallback"
    assert result.response.shape == "card_results"
    assert result.attempts == ["proxy", "direct", "fallback"]


@pytest.mark.asyncio
async def test_fallback_expects_json_even_for_html_stores():
    adapter = MagicSurAdapter(
        "magicsur", "https://www.cartasmagicsur.cl", fallback_route="magicsur-direct"
    )

    def handler(request: httpx.Request):
        assert request.url.path == "/api/magicsur-direct"
        return httpx.Response(200, json=[])

    async with _client(handler) as client:
        outcome = await attempt_tier(client, FallbackServiceTier(FALLBACK_BASE), adapter, "bolt", timeout=1.0)

    assert isinstance(outcome, RawResponse)
    assert outcome.payload == []


@pytest.mark.asyncio
async def test_fallback_skipped_for_stores_without_route(three_tiers):
    adapter = ShopifySuggestAdapter("lacomarca", "https://www.tiendalacomarca.cl")
    seen = []

    def handler(request: httpx.Request):
        seen.append(request.url.host)
        return httpx.Response(500)

    async with _client(handler) as client:
        result = await TierChain(three_tiers).run(client, adapter, "bolt")

    assert result.attempts == ["proxy", "direct"]
    assert "fallback.test" not in seen
