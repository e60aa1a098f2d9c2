from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from pgm_report.model import DailyReport, StatusSummary


def iso_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def format_console_summary(report: DailyReport) -> List[str]:
    """Return the console lines printed at the end of a run."""

    summary = report.summary
    return [
        "===== 指示檔配信查詢結果 =====",
        summary.date.isoformat(),
        f"指示檔配信門市總數: {summary.total_count}",
        f"指示檔配信成功門市: {summary.success_count}",
        f"指示檔配信失敗門市: {summary.fail_count}",
        f"NBITS取檔成功門市: {summary.nbits_success_count}",
        f"NBITS未取檔門市: {report.missing_count}",
        "===============================",
        f"緊急復舊配信失敗門市 XLSX 輸出路徑: {report.report_path}",
    ]


def _serialise_summary(summary: StatusSummary) -> Dict[str, Any]:
    return {
        "date": summary.date.isoformat(),
        "total_count": summary.total_count,
        "success_count": summary.success_count,
        "fail_count": summary.fail_count,
        "nbits_success_count": summary.nbits_success_count,
    }


def build_summary_payload(report: DailyReport) -> Dict[str, Any]:
    return {
        "status": "success",
        "timestamp": iso_timestamp(),
        "summary": _serialise_summary(report.summary),
        "nbits_missing_count": report.missing_count,
        "report_path": str(report.report_path),
    }


def write_summary_json(report: DailyReport, output_path: Path) -> Path:
    payload = build_summary_payload(report)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)

    return output_path


__all__ = [
    "build_summary_payload",
    "format_console_summary",
    "iso_timestamp",
    "write_summary_json",
]
