"""Distribution-failed stores read from IGAL."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List

from pgm_report import queries
from pgm_report.db_gateway import DataSource
from pgm_report.model import DetailRow, normalize_store_code


def row_from_record(record: Dict[str, Any]) -> DetailRow:
    """Build a :class:`DetailRow` from a ``trm_id/dlf_ip1/adsl_1[/store]`` record.

    Records without a ``store`` column get the code cut from ``trm_id``.
    """
    return DetailRow(
        terminal_id=record.get("trm_id"),
        ip_address_primary=record.get("dlf_ip1"),
        ip_address_secondary=record.get("adsl_1"),
        store=record.get("store") or normalize_store_code(record.get("trm_id")),
    )


class FailureRowSource:
    """Stores whose distribution job ended in the fail status.

    The same statement backs both the exported rows and the count shown in
    the status summary. Query errors propagate to the caller.
    """

    def __init__(self, igal: DataSource) -> None:
        self.igal = igal

    def find_failed_stores(self, target: date) -> List[DetailRow]:
        records = self.igal.rows(queries.failed_store_rows(target))
        return [row_from_record(record) for record in records]

    def count_failed_stores(self, target: date) -> int | None:
        return self.igal.scalar(queries.failed_store_count(target))


__all__ = ["FailureRowSource", "row_from_record"]
