"""Daily distribution/retrieval reconciliation report.

Exposes the high-level ``run_daily_report`` API for programmatic use.
"""

from .runner import run_daily_report  # Public API for one report run

__all__ = ["run_daily_report"]  # Re-exported symbol
