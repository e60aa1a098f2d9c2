"""Command-line interface for the daily distribution report."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

from .config import load_settings
from .report import format_console_summary, write_summary_json
from .runner import run_daily_report

logger = logging.getLogger("pgm_report")


def parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"invalid date {value!r}, expected YYYY-MM-DD"
        ) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pgm-report",
        description="Compare IGAL distribution results with NBITS retrievals for one day",
    )
    parser.add_argument(
        "date",
        nargs="?",
        type=parse_date,
        default=None,
        help="Target date (YYYY-MM-DD); defaults to today",
    )
    parser.add_argument("--config", help="Optional app.ini with datasource settings")
    parser.add_argument("--output-dir", help="Directory for the XLSX report")
    parser.add_argument("--summary-json", help="Optional JSON summary output path")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.config, output_dir=args.output_dir)
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else settings.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        report = run_daily_report(args.date, settings)
        for line in format_console_summary(report):
            print(line)
        if args.summary_json:
            path = write_summary_json(report, Path(args.summary_json))
            print(f"Summary written to {path}")
    except Exception as exc:
        logger.critical("[FATAL] %s", exc, exc_info=True)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover - manual invocation
    sys.exit(main())
