"""Stores IGAL distributed to successfully but NBITS never retrieved from."""

from __future__ import annotations

import logging
from datetime import date
from typing import List

from pgm_report import queries
from pgm_report.compare import batched, missing_stores
from pgm_report.db_gateway import DataSource
from pgm_report.failures import row_from_record
from pgm_report.model import DetailRow

DEFAULT_IN_CLAUSE_BATCH_SIZE = 1000  # Oracle rejects IN lists longer than this

logger = logging.getLogger(__name__)


class DiffResolver:
    """Compare IGAL success stores with NBITS success stores for one date.

    Nothing is caught here: an incomplete store set would produce a wrong
    difference, so any query error is left to the caller.
    """

    def __init__(
        self,
        igal: DataSource,
        nbits: DataSource,
        *,
        batch_size: int = DEFAULT_IN_CLAUSE_BATCH_SIZE,
    ) -> None:
        if batch_size < 1:
            raise ValueError(f"batch_size must be positive: {batch_size}")
        self.igal = igal
        self.nbits = nbits
        self.batch_size = batch_size

    def find_missing_retrievals(self, target: date) -> List[DetailRow]:
        """Return store detail rows for stores NBITS has no retrieval of."""

        # 1. IGAL stores that received the file
        distributed = self.igal.column(queries.distributed_store_codes(target))
        if not distributed:
            logger.info("No successful distributions on %s", target)
            return []

        # 2. NBITS stores that fetched it
        retrieved = self.nbits.column(queries.retrieved_store_codes(target))

        # 3. Difference
        missing = missing_stores(distributed, retrieved)
        logger.info(
            "%s: %d distributed, %d retrieved, %d missing",
            target,
            len(distributed),
            len(retrieved),
            len(missing),
        )

        # 4. Store master details
        return self._lookup_details(missing)

    def count_missing_retrievals(self, target: date) -> int:
        return len(self.find_missing_retrievals(target))

    def _lookup_details(self, stores: List[str]) -> List[DetailRow]:
        rows: List[DetailRow] = []
        for chunk in batched(stores, self.batch_size):
            records = self.igal.rows(queries.store_details(chunk))
            rows.extend(row_from_record(record) for record in records)
        return rows


__all__ = ["DEFAULT_IN_CLAUSE_BATCH_SIZE", "DiffResolver"]
