import argparse
import asyncio
import json
import os
import sys
from typing import Any, Tuple

from .dashboards import create_dashboard
from .errors import SocialPulseError
from .pipeline import get_analytics, get_hashtag_report, get_insights, ingest_upload
from .store import InMemoryPostStore
from .types import PostFilters

LOCAL_USER = "local"


async def _load(path: str) -> Tuple[InMemoryPostStore, str, Any]:
    with open(path, "rb") as f:
        content = f.read()

    store = InMemoryPostStore()
    dashboard = await create_dashboard(store, LOCAL_USER, os.path.basename(path))
    result = await ingest_upload(store, LOCAL_USER, dashboard.id, os.path.basename(path), content)
    return store, dashboard.id, result


async def _run(args: argparse.Namespace) -> Any:
    store, dashboard_id, result = await _load(args.file)

    if args.command == "normalize":
        return result.model_dump(mode="json")

    if args.command == "analytics":
        filters = PostFilters(
            sentiment=args.sentiment, dateFrom=args.date_from, dateTo=args.date_to
        )
        summary = await get_analytics(store, LOCAL_USER, dashboard_id, filters)
        return summary.model_dump(mode="json")

    if args.command == "insights":
        cards = await get_insights(store, LOCAL_USER, dashboard_id)
        return [c.model_dump(mode="json", exclude_none=True) for c in cards]

    report = await get_hashtag_report(store, LOCAL_USER, dashboard_id)
    return report.model_dump(mode="json")


def main():
    parser = argparse.ArgumentParser(
        description="Social post dataset normalizer and analytics"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Command: normalize
    norm_parser = subparsers.add_parser(
        "normalize", help="Normalize a CSV/JSON export into canonical posts with predictions"
    )

    # Command: analytics
    ana_parser = subparsers.add_parser("analytics", help="Aggregate dashboard analytics")
    ana_parser.add_argument(
        "--sentiment",
        type=str,
        choices=["all", "positive", "neutral", "negative"],
        help="Only include posts with this sentiment label",
    )
    ana_parser.add_argument(
        "--date-from", type=str, help="Only include posts on or after this date (YYYY-MM-DD)"
    )
    ana_parser.add_argument(
        "--date-to", type=str, help="Only include posts on or before this date (YYYY-MM-DD)"
    )

    # Command: insights
    ins_parser = subparsers.add_parser("insights", help="Generate insight cards")

    # Command: hashtags
    tag_parser = subparsers.add_parser("hashtags", help="Hashtag frequency and engagement report")

    for sub in (norm_parser, ana_parser, ins_parser, tag_parser):
        sub.add_argument("--file", type=str, required=True, help="Path to a CSV or JSON export")
        sub.add_argument("--output", type=str, help="Path to save JSON output (optional)")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return

    try:
        payload = asyncio.run(_run(args))
    except (SocialPulseError, OSError) as e:
        print(f"{args.command.capitalize()} failed: {e}", file=sys.stderr)
        sys.exit(1)

    output_json = json.dumps(payload, indent=2, ensure_ascii=False)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output_json)
        print(f"Saved {args.command} output to {args.output}")
    else:
        print(output_json)


if __name__ == "__main__":
    main()
