"""Domain models for the daily distribution/retrieval reconciliation.

These dataclasses represent the values shared throughout the tool: the status
summary printed to the console, the store detail rows exported to Excel, and
the tagged count result used while the summary is being assembled.
"""

from __future__ import annotations  # Postponed evaluation of annotations (PEP 563)

from dataclasses import dataclass  # Dataclass utilities
from datetime import date  # Target calendar date
from pathlib import Path  # Location of the written report

STORE_CODE_OFFSET = 2  # Store code starts after the two-character pad
STORE_CODE_LENGTH = 6  # Fixed-width store code


def normalize_store_code(raw_id: str | None) -> str | None:
    """Return the store code embedded in a terminal identifier.

    Both IGAL terminal ids (``"00" + store``) and NBITS terminal ids carry the
    store code at offset 2. The value is not stripped or case-folded, so it
    compares equal only when the source data matches exactly.
    """

    if raw_id is None:
        return None
    return raw_id[STORE_CODE_OFFSET : STORE_CODE_OFFSET + STORE_CODE_LENGTH]


@dataclass(frozen=True, slots=True)
class StatusSummary:
    """Distribution and retrieval counts for one target date."""

    date: date  # Target date
    total_count: int = 0  # Stores the distribution job ran for
    success_count: int = 0  # Stores that received the file
    fail_count: int = 0  # Stores flagged as distribution-failed
    nbits_success_count: int = 0  # Stores NBITS confirmed retrieving the file


@dataclass(frozen=True, slots=True)
class DetailRow:
    """One store line in the exported report (same shape for both sheets)."""

    terminal_id: str | None  # Raw IGAL terminal id (TRM_ID)
    ip_address_primary: str | None  # DLF_IP1
    ip_address_secondary: str | None  # ADSL_1
    store: str | None = None  # Normalised store code, when the query returns it


@dataclass(frozen=True, slots=True)
class CountResult:
    """Outcome of a single count query: a value, or the reason it failed."""

    value: int | None = None
    error: str | None = None

    @classmethod
    def ok(cls, value: int) -> "CountResult":
        return cls(value=value)

    @classmethod
    def failed(cls, error: str) -> "CountResult":
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def or_zero(self) -> int:
        return self.value if self.is_ok and self.value is not None else 0


@dataclass(frozen=True, slots=True)
class DailyReport:
    """Everything one run produced: the summary, the missing count and the file."""

    summary: StatusSummary
    missing_count: int  # Equals the number of rows on the NBITS sheet
    report_path: Path


__all__ = [
    "CountResult",
    "DailyReport",
    "DetailRow",
    "StatusSummary",
    "normalize_store_code",
]
