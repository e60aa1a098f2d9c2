from __future__ import annotations

import logging
from datetime import date

from pgm_report.config import Settings
from pgm_report.db_gateway import DataSource
from pgm_report.diff import DiffResolver
from pgm_report.excel_writer import ReportExporter
from pgm_report.failures import FailureRowSource
from pgm_report.model import DailyReport
from pgm_report.status import StatusAggregator

logger = logging.getLogger(__name__)


def build_report(
    target: date,
    igal: DataSource,
    nbits: DataSource,
    *,
    output_dir,
    batch_size: int,
) -> DailyReport:
    """Run the summary, the missing-retrieval count and the export for one date."""

    failures = FailureRowSource(igal)
    diff = DiffResolver(igal, nbits, batch_size=batch_size)
    aggregator = StatusAggregator(igal, nbits, failures)
    exporter = ReportExporter(failures, diff, output_dir)

    # 1. Status counts (never raises)
    summary = aggregator.summarize(target)

    # 2. Stores NBITS did not retrieve from
    missing_count = diff.count_missing_retrievals(target)

    # 3. Two-sheet workbook
    report_path = exporter.export(target)

    return DailyReport(summary=summary, missing_count=missing_count, report_path=report_path)


def run_daily_report(target: date | None, settings: Settings) -> DailyReport:
    """Open both databases, build the report for ``target`` and close them again."""

    target = target or date.today()
    logger.info("Building distribution report for %s", target)

    igal = DataSource.from_url("IGAL", settings.database_url("igal"), echo=settings.echo_sql)
    try:
        nbits = DataSource.from_url(
            "NBITS", settings.database_url("nbits"), echo=settings.echo_sql
        )
        try:
            return build_report(
                target,
                igal,
                nbits,
                output_dir=settings.output_dir,
                batch_size=settings.in_clause_batch_size,
            )
        finally:
            nbits.dispose()
    finally:
        igal.dispose()


__all__ = ["build_report", "run_daily_report"]
