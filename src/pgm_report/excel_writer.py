"""Excel export of the emergency recovery report.

This module writes the daily report workbook using ``openpyxl``: one sheet of
distribution-failed stores and one sheet of stores NBITS never retrieved the
file for. The workbook is saved next to its final name and moved into place
only once it has been written completely.
"""

from __future__ import annotations

import logging
import os
import tempfile
import unicodedata
from datetime import date
from pathlib import Path  # Filesystem path management
from typing import Iterable, List, Sequence

from openpyxl import Workbook  # Excel workbook builder
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from pgm_report.diff import DiffResolver
from pgm_report.failures import FailureRowSource
from pgm_report.model import DetailRow

HEADERS = ("TRM_ID", "DLF_IP1", "ADSL_1")  # Shared by both sheets
FAILED_SHEET_TITLE = "指示檔配信失敗門市"  # Distribution-failed stores
MISSING_SHEET_TITLE = "NBITS未取檔門市"  # Retrieval-missing stores
FILENAME_SUFFIX = "緊急復舊配信失敗門市.xlsx"  # Must not change; consumers match on it
COLUMN_PADDING = 2  # Extra characters added when fitting column widths

logger = logging.getLogger(__name__)


def report_filename(target: date) -> str:
    """Return ``YYYYMMDD`` followed by the fixed report suffix."""
    return target.strftime("%Y%m%d") + FILENAME_SUFFIX


def null_safe(value: str | None) -> str:
    return "" if value is None else value


def display_width(text: str) -> int:
    """Approximate on-screen width; full-width characters count double."""
    return sum(2 if unicodedata.east_asian_width(ch) in ("W", "F") else 1 for ch in text)


def row_cells(row: DetailRow) -> List[str]:
    return [
        null_safe(row.terminal_id),
        null_safe(row.ip_address_primary),
        null_safe(row.ip_address_secondary),
    ]


def fill_sheet(sheet: Worksheet, rows: Iterable[DetailRow]) -> None:
    """Write the header and one line per row, in the given order."""
    sheet.append(list(HEADERS))
    for row in rows:
        sheet.append(row_cells(row))


def autofit_columns(sheet: Worksheet, column_count: int = len(HEADERS)) -> None:
    """Size each column to its widest rendered value."""
    widths = [0] * column_count
    for values in sheet.iter_rows(max_col=column_count, values_only=True):
        for idx, value in enumerate(values):
            text = "" if value is None else str(value)
            widths[idx] = max(widths[idx], display_width(text))
    for idx, width in enumerate(widths, start=1):
        sheet.column_dimensions[get_column_letter(idx)].width = width + COLUMN_PADDING


def build_workbook(
    failed_rows: Sequence[DetailRow],
    missing_rows: Sequence[DetailRow],
) -> Workbook:
    """Build the two-sheet report workbook in memory."""
    workbook = Workbook()
    workbook.remove(workbook.active)  # Drop the default empty sheet

    failed_sheet = workbook.create_sheet(FAILED_SHEET_TITLE)
    fill_sheet(failed_sheet, failed_rows)

    missing_sheet = workbook.create_sheet(MISSING_SHEET_TITLE)
    fill_sheet(missing_sheet, missing_rows)

    autofit_columns(failed_sheet)
    autofit_columns(missing_sheet)
    return workbook


def default_file_mode() -> int:
    """Mode a plainly created file gets under the current umask."""
    mask = os.umask(0)
    os.umask(mask)
    return 0o666 & ~mask


def save_workbook_atomic(workbook: Workbook, path: Path) -> Path:
    """Save ``workbook`` to ``path`` without ever leaving a partial file there."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        prefix=".pgm_report-", suffix=".xlsx.tmp", dir=path.parent
    )
    os.close(fd)  # openpyxl opens the path itself
    tmp_path = Path(tmp_name)
    try:
        workbook.save(tmp_path)
        os.chmod(tmp_path, default_file_mode())  # mkstemp creates files as 0600
        os.replace(tmp_path, path)  # Overwrites any earlier report
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return path


class ReportExporter:
    """Write the daily emergency recovery workbook for a target date."""

    def __init__(
        self,
        failures: FailureRowSource,
        diff: DiffResolver,
        output_dir: Path | str,
    ) -> None:
        self.failures = failures
        self.diff = diff
        self.output_dir = Path(output_dir)

    def report_path(self, target: date) -> Path:
        return self.output_dir / report_filename(target)

    def export(self, target: date) -> Path:
        """Query both row sets and write the workbook; return its path."""

        # Query first so a database error never touches the filesystem
        failed_rows = self.failures.find_failed_stores(target)
        missing_rows = self.diff.find_missing_retrievals(target)

        workbook = build_workbook(failed_rows, missing_rows)
        path = save_workbook_atomic(workbook, self.report_path(target))
        logger.info(
            "Wrote %s (%d failed, %d missing)", path, len(failed_rows), len(missing_rows)
        )
        return path


__all__ = [
    "FAILED_SHEET_TITLE",
    "FILENAME_SUFFIX",
    "HEADERS",
    "MISSING_SHEET_TITLE",
    "ReportExporter",
    "build_workbook",
    "report_filename",
]
