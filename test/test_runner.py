import json
import logging
from datetime import date
from pathlib import Path

import pytest

from pgm_report import cli
from pgm_report.config import ConfigurationError, Settings
from pgm_report.model import DailyReport, StatusSummary
from pgm_report.report import build_summary_payload, format_console_summary
from pgm_report.runner import run_daily_report

REPORT_DATE = date(2025, 12, 17)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)  # No stray .env from the working directory
    for name in (
        "IGAL_URL",
        "NBITS_URL",
        "OUTPUT_DIR",
        "IN_CLAUSE_BATCH_SIZE",
        "LOG_LEVEL",
        "ECHO_SQL",
    ):
        monkeypatch.delenv(f"PGM_REPORT_{name}", raising=False)


@pytest.fixture
def settings(igal_url, nbits_url, tmp_path):
    return Settings(
        igal_url=igal_url,
        nbits_url=nbits_url,
        output_dir=tmp_path / "reports",
        _env_file=None,
    )


# --------------------------------------------------------------------
# RUNNER
# --------------------------------------------------------------------
def test_run_daily_report_end_to_end(settings):
    report = run_daily_report(REPORT_DATE, settings)

    assert report.summary == StatusSummary(REPORT_DATE, 3, 3, 1, 2)
    assert report.missing_count == 1
    assert report.report_path == settings.output_dir / "20251217緊急復舊配信失敗門市.xlsx"
    assert report.report_path.exists()


def test_run_daily_report_requires_urls(tmp_path):
    with pytest.raises(ConfigurationError):
        run_daily_report(REPORT_DATE, Settings(output_dir=tmp_path, _env_file=None))


# --------------------------------------------------------------------
# CONSOLE / JSON SUMMARY
# --------------------------------------------------------------------
def _report():
    return DailyReport(
        summary=StatusSummary(REPORT_DATE, 10, 8, 2, 7),
        missing_count=1,
        report_path=Path("reports/20251217緊急復舊配信失敗門市.xlsx"),
    )


def test_console_summary_lines():
    lines = format_console_summary(_report())

    assert "2025-12-17" in lines
    assert "指示檔配信門市總數: 10" in lines
    assert "指示檔配信成功門市: 8" in lines
    assert "指示檔配信失敗門市: 2" in lines
    assert "NBITS取檔成功門市: 7" in lines
    assert "NBITS未取檔門市: 1" in lines


def test_summary_payload():
    payload = build_summary_payload(_report())
    assert payload["status"] == "success"
    assert payload["summary"]["total_count"] == 10
    assert payload["nbits_missing_count"] == 1


# --------------------------------------------------------------------
# CLI
# --------------------------------------------------------------------
def write_ini(path: Path, igal_url: str, nbits_url: str, output_dir: Path) -> Path:
    path.write_text(
        "[datasource.igal]\n"
        f"url = {igal_url}\n"
        "\n"
        "[datasource.nbits]\n"
        f"url = {nbits_url}\n"
        "\n"
        "[report]\n"
        f"output_dir = {output_dir}\n",
        encoding="utf-8",
    )
    return path


def test_cli_prints_summary_and_writes_json(igal_url, nbits_url, tmp_path, capsys):
    ini = write_ini(tmp_path / "app.ini", igal_url, nbits_url, tmp_path / "out")
    summary_path = tmp_path / "summary.json"

    code = cli.main(["2025-12-17", "--config", str(ini), "--summary-json", str(summary_path)])

    out = capsys.readouterr().out
    assert code == 0
    assert "NBITS未取檔門市: 1" in out
    assert (tmp_path / "out" / "20251217緊急復舊配信失敗門市.xlsx").exists()
    assert json.loads(summary_path.read_text(encoding="utf-8"))["summary"]["fail_count"] == 1


def test_cli_output_dir_argument_wins(igal_url, nbits_url, tmp_path):
    ini = write_ini(tmp_path / "app.ini", igal_url, nbits_url, tmp_path / "out")

    code = cli.main(["2025-12-17", "--config", str(ini), "--output-dir", str(tmp_path / "other")])

    assert code == 0
    assert (tmp_path / "other" / "20251217緊急復舊配信失敗門市.xlsx").exists()


def test_cli_rejects_bad_date():
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["2025-13-40"])
    assert excinfo.value.code == 2


def test_cli_reports_fatal_error(tmp_path, caplog):
    with caplog.at_level(logging.CRITICAL):
        code = cli.main(["2025-12-17", "--output-dir", str(tmp_path)])

    assert code == 1
    assert "[FATAL]" in caplog.text
    assert "IGAL database URL is not configured" in caplog.text
