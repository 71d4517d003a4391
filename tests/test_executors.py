import httpx
import pytest

from conftest import shopify_payload, shopify_product
from multisource.adapters import ShopifySuggestAdapter
from multisource.exceptions import (
    SourceBlocked,
    SourceMalformedResponse,
    SourceRateLimited,
    SourceTimeout,
    SourceUnreachable,
)
from multisource.executors import chain_failure_error, classify_chain_failures, search_source
from multisource.transport.base import TierFailure


def _failures(*kinds):
    return [TierFailure(tier=f"tier{i}", kind=kind, message=kind) for i, kind in enumerate(kinds)]


@pytest.mark.parametrize(
    "kinds, expected",
    [
        (("timeout",), "timed_out"),
        (("timeout", "timeout"), "timed_out"),
        (("timeout", "http_error"), "unreachable"),
        (("unreachable",), "unreachable"),
        (("http_error", "blocked"), "blocked"),
        (("rate_limited",), "rate_limited"),
        (("invalid_response",), "malformed_response"),
        (("invalid_response", "unreachable"), "unreachable"),
    ],
)
def test_classify_chain_failures(kinds, expected):
    assert classify_chain_failures(_failures(*kinds)) == expected


@pytest.mark.parametrize(
    "kinds, error_cls",
    [
        (("http_error", "blocked"), SourceBlocked),
        (("rate_limited",), SourceRateLimited),
        (("timeout", "timeout"), SourceTimeout),
        (("timeout", "unreachable"), SourceUnreachable),
        (("invalid_response",), SourceMalformedResponse),
    ],
)
def test_chain_failure_error_type(kinds, error_cls):
    error = chain_failure_error("paytowin", _failures(*kinds))

    assert type(error) is error_cls
    assert error.source_name == "paytowin"
    assert error.outcome == classify_chain_failures(_failures(*kinds))
    assert error.detail == {"tiers": [f"tier{i}" for i in range(len(kinds))]}


def test_timeout_error_is_also_unreachable():
    assert isinstance(chain_failure_error("alpha", _failures("timeout")), SourceUnreachable)


def test_no_serving_tier_reads_as_unreachable():
    error = chain_failure_error("alpha", [])

    assert type(error) is SourceUnreachable
    assert error.message == "No transport tier serves this source"


class ExplodingAdapter(ShopifySuggestAdapter):
    def parse(self, payload, query, shape=None):
        raise KeyError("price")


@pytest.mark.asyncio
async def test_parser_crash_is_malformed_response(make_source):
    source = make_source("boom", adapter_cls=ExplodingAdapter)
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, json=shopify_payload(shopify_product("Bolt", "100")))
    )

    async with httpx.AsyncClient(transport=transport) as client:
        result = await search_source(source, "bolt", client=client)

    assert result.outcome == "malformed_response"
    assert result.offers == []
    assert result.status.tier == "direct"
    assert result.status.message == "Parser error: KeyError"


@pytest.mark.asyncio
async def test_success_status_carries_tier_and_count(make_source):
    source = make_source("alpha")
    transport = httpx.MockTransport(
        lambda request: httpx.Response(
            200, json=shopify_payload(shopify_product("Bolt", "100"), shopify_product("Bolt foil", "900"))
        )
    )

    async with httpx.AsyncClient(transport=transport) as client:
        result = await search_source(source, "bolt", client=client)

    assert result.outcome == "success"
    assert result.status.offer_count == 2
    assert result.status.attempts == ["direct"]
    assert [offer.source_name for offer in result.offers] == ["alpha", "alpha"]


@pytest.mark.asyncio
async def test_throttled_source_reports_rate_limited(make_source):
    source = make_source("alpha")
    transport = httpx.MockTransport(lambda request: httpx.Response(429))

    async with httpx.AsyncClient(transport=transport) as client:
        result = await search_source(source, "bolt", client=client)

    assert result.outcome == "rate_limited"
    assert result.offers == []
    assert result.status.tier is None
    assert result.status.message.startswith("direct: rate_limited")
