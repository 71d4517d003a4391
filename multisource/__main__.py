"""Command-line entry point: python -m multisource "<query>"."""

import argparse
import asyncio
import json
import sys
from typing import List, Optional

from multisource.aggregator import Aggregator
from multisource.catalog import build_default_sources
from multisource.exceptions import MultiSourceError
from multisource.health import HealthMonitor
from multisource.models import AggregateResult, HealthReport, Money
from multisource.settings import load_settings
from observability import setup_logging


def _format_price(offer) -> str:
    if isinstance(offer.price, Money):
        amount = f"{offer.price.amount:,.0f}".replace(",", ".")
        return f"${amount} {offer.price.currency}"
    return "N/A"


def render_result(result: AggregateResult) -> str:
    lines = [f'Results for "{result.query}" ({len(result.offers)} offers, {result.elapsed_ms} ms)']
    if result.cached:
        lines[0] += " [cached]"
    for offer in result.offers:
        stock = "in stock" if offer.in_stock else "out of stock"
        lines.append(
            f"  {_format_price(offer):>16}  {stock:<12}  {offer.source_name:<12}  {offer.title}"
        )
        if offer.product_url:
            lines.append(f"{'':>18}{offer.product_url}")
    lines.append("")
    lines.append("Sources:")
    for status in result.source_statuses:
        tier = f" via {status.tier}" if status.tier else ""
        lines.append(f"  {status.source_name:<12} {status.outcome}{tier} ({status.offer_count})")
    if result.all_sources_failed:
        lines.append("No source could be reached.")
    return "\n".join(lines)


def render_health(report: HealthReport) -> str:
    verdict = "healthy" if report.overall_healthy else "unhealthy"
    lines = [
        f"Overall: {verdict} ({report.reachable_count}/{len(report.sources)} reachable, "
        f"minimum {report.min_reachable})"
    ]
    for name, reachable in report.sources.items():
        lines.append(f"  {name:<12} {'ok' if reachable else 'down'} ({report.details.get(name)})")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="multisource", description="Search every configured store for an item"
    )
    parser.add_argument("query", nargs="?", help="Item to search for")
    parser.add_argument("--deadline", type=float, help="Overall search deadline in seconds")
    parser.add_argument("--health", action="store_true", help="Probe source reachability instead")
    parser.add_argument("--json", action="store_true", help="Print machine-readable JSON")
    parser.add_argument("--sources", help="Comma separated subset of sources to use")
    return parser


async def run(args: argparse.Namespace) -> int:
    settings = load_settings()
    if args.sources:
        settings = settings.model_copy(
            update={"enabled_sources": [s.strip() for s in args.sources.split(",") if s.strip()]}
        )
    sources = build_default_sources(settings)

    if args.health:
        monitor = HealthMonitor(
            sources,
            min_reachable=settings.health_min_reachable,
            probe_timeout=args.deadline or settings.query_deadline_seconds,
        )
        report = await monitor.check()
        print(report.model_dump_json(indent=2) if args.json else render_health(report))
        return 0 if report.overall_healthy else 1

    aggregator = Aggregator.from_settings(settings, sources)
    result = await aggregator.search(args.query, deadline=args.deadline)
    if args.json:
        print(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))
    else:
        print(render_result(result))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.health and not args.query:
        parser.error("a query is required unless --health is given")

    setup_logging()
    try:
        return asyncio.run(run(args))
    except MultiSourceError as e:
        print(json.dumps(e.to_dict()), file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
