"""Distribution/retrieval status summary.

Each of the four counts is fetched on its own so that one failing database
or statement only zeroes its own metric. The summary is always returned.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable

from pgm_report import queries
from pgm_report.db_gateway import DataSource
from pgm_report.failures import FailureRowSource
from pgm_report.model import CountResult, StatusSummary

logger = logging.getLogger(__name__)


def _run_count(tag: str, query: Callable[[], Any]) -> CountResult:
    try:
        value = query()
    except Exception as exc:
        logger.error("%s count query failed: %s", tag, exc)
        return CountResult.failed(str(exc))
    if value is None:
        logger.error("%s count query returned no value", tag)
        return CountResult.failed("no value")
    return CountResult.ok(int(value))


class StatusAggregator:
    """Fold the four per-date counts into a :class:`StatusSummary`."""

    def __init__(
        self,
        igal: DataSource,
        nbits: DataSource,
        failures: FailureRowSource | None = None,
    ) -> None:
        self.igal = igal
        self.nbits = nbits
        self.failures = failures or FailureRowSource(igal)

    def count_total(self, target: date) -> CountResult:
        return _run_count(
            "IGAL-total",
            lambda: self.igal.scalar(queries.distribution_total_count(target)),
        )

    def count_success(self, target: date) -> CountResult:
        return _run_count(
            "IGAL-success",
            lambda: self.igal.scalar(queries.distribution_success_count(target)),
        )

    def count_fail(self, target: date) -> CountResult:
        return _run_count("IGAL-fail", lambda: self.failures.count_failed_stores(target))

    def count_nbits_success(self, target: date) -> CountResult:
        return _run_count(
            "NBITS-success",
            lambda: self.nbits.scalar(queries.retrieval_success_count(target)),
        )

    def summarize(self, target: date) -> StatusSummary:
        return StatusSummary(
            date=target,
            total_count=self.count_total(target).or_zero(),
            success_count=self.count_success(target).or_zero(),
            fail_count=self.count_fail(target).or_zero(),
            nbits_success_count=self.count_nbits_success(target).or_zero(),
        )


__all__ = ["StatusAggregator"]
