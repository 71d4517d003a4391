import pytest

from multisource.__main__ import build_parser, main, render_health, render_result, run
from multisource.aggregator import Aggregator
from multisource.models import (
    UNPRICED,
    AggregateResult,
    CanonicalOffer,
    HealthReport,
    Money,
    SourceStatusSnapshot,
)
from multisource.settings import Settings


def test_render_result_lists_offers_and_sources():
    result = AggregateResult(
        query="sol ring",
        offers=[
            CanonicalOffer(
                source_name="tcgmatch",
                source_url="https://tcgmatch.cl",
                title="Sol Ring",
                price=Money(amount=4500),
                in_stock=True,
                product_url="https://tcgmatch.cl/producto/1",
            ),
            CanonicalOffer(
                source_name="catlotus",
                source_url="https://catlotus.cl",
                title="Sol Ring (foil)",
                price=UNPRICED,
            ),
        ],
        source_statuses=[
            SourceStatusSnapshot(source_name="tcgmatch", outcome="success", offer_count=1, tier="direct"),
            SourceStatusSnapshot(source_name="catlotus", outcome="success", offer_count=1, tier="proxy"),
        ],
    )

    text = render_result(result)

    assert "$4.500 CLP" in text
    assert "N/A" in text
    assert "success via direct (1)" in text


def test_render_health():
    report = HealthReport(
        sources={"a": True, "b": False},
        overall_healthy=True,
        reachable_count=1,
        details={"a": "success", "b": "blocked"},
    )
    text = render_health(report)
    assert text.startswith("Overall: healthy (1/2 reachable")
    assert "down (blocked)" in text


def test_parser_flags():
    args = build_parser().parse_args(["sol ring", "--deadline", "3", "--json"])
    assert args.query == "sol ring"
    assert args.deadline == 3.0
    assert args.json
    assert not args.health


def test_query_required_without_health():
    with pytest.raises(SystemExit):
        main([])


@pytest.mark.asyncio
@pytest.mark.parametrize("ttl, cached", [(300, True), (0, False)])
async def test_run_builds_cache_from_settings(monkeypatch, capsys, ttl, cached):
    seen = {}

    async def fake_search(self, query, deadline=None):
        seen["cache"] = self.cache
        return AggregateResult(query=query)

    monkeypatch.setattr(
        "multisource.__main__.load_settings", lambda: Settings(cache_ttl_seconds=ttl)
    )
    monkeypatch.setattr(Aggregator, "search", fake_search)

    exit_code = await run(build_parser().parse_args(["sol ring", "--sources", "tcgmatch"]))

    assert exit_code == 0
    assert (seen["cache"] is not None) is cached
    if cached:
        assert seen["cache"].ttl_seconds == 300
    assert "sol ring" in capsys.readouterr().out
