"""Ad metrics engine entrypoint."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from ad_metrics.application.report_service import PipelineOptions, run_reporting_pipeline
from ad_metrics.config import load_config
from ad_metrics.domain.models import FilterOptions
from ad_metrics.errors import MetricsEngineError

logger = logging.getLogger(__name__)


def _month_index(value: str) -> int:
    """Calendar month 1-12 on the command line, zero-based internally."""
    try:
        month = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid month: {value}") from exc
    if not 1 <= month <= 12:
        raise argparse.ArgumentTypeError(f"month must be between 1 and 12, got {month}")
    return month - 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Compute ad performance metrics from a report export.")
    parser.add_argument("--config", type=Path, help="JSON file listing report sources")
    source_group = parser.add_mutually_exclusive_group()
    source_group.add_argument("--source", default=None, help="Source id to refresh (defaults to the selected one)")
    source_group.add_argument("--file", type=Path, default=None, help="Read a local CSV export instead of fetching")
    parser.add_argument("--month", type=_month_index, default=None, help="Calendar month 1-12")
    parser.add_argument("--start", default="", help="Inclusive start date YYYY-MM-DD")
    parser.add_argument("--end", default="", help="Inclusive end date YYYY-MM-DD")
    parser.add_argument("--campaign", default="", help="Exact campaign name")
    parser.add_argument("--ad-set", default="", help="Exact ad set name")
    parser.add_argument("--weekly", default="", metavar="CAMPAIGN", help="Campaign for the 4-week trend")
    parser.add_argument("--output-dir", type=Path, default=Path("output"))
    return parser


def _filters_from_args(args: argparse.Namespace, parser: argparse.ArgumentParser) -> FilterOptions:
    if args.month is not None and (args.start or args.end):
        parser.error("--month cannot be combined with --start/--end")
    filters = FilterOptions(campaign_name=args.campaign, ad_set_name=args.ad_set)
    if args.month is not None:
        return filters.with_month(args.month)
    return filters.with_date_range(args.start, args.end)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    filters = _filters_from_args(args, parser)

    try:
        config = load_config(args.config)
    except MetricsEngineError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(level=config.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    options = PipelineOptions(
        output_dir=args.output_dir,
        source_id=args.source,
        input_file=args.file,
        filters=filters,
        weekly_campaign=args.weekly,
    )
    try:
        run_reporting_pipeline(config, options)
    except MetricsEngineError as exc:
        logger.error("Report failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
