"""Table definitions and statement builders for the reconciliation queries.

IGAL holds the distribution log (``send_file_kanri``) and the store master
(``ig_ui_sc_t``); NBITS holds the retrieval log (``nbit_dllog``). All date
filters select the half-open window ``[day 00:00, next day 00:00)``.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Sequence, Tuple

from sqlalchemy import (
    Column,
    ColumnElement,
    DateTime,
    MetaData,
    Select,
    String,
    Table,
    func,
    literal,
    select,
)

DISTRIBUTION_JOB_NAME = "SDCDGETR"
DISTRIBUTION_SUCCESS_STATUS = "8"
DISTRIBUTION_FAIL_STATUS = "7"
STORE_ID_PAD = "00"
RETRIEVAL_FILE_ID = "SDTDRCV3"
RETRIEVAL_SUCCESS_STATUS = "2"

IGAL_METADATA = MetaData()
NBITS_METADATA = MetaData()

send_file_kanri = Table(
    "send_file_kanri",
    IGAL_METADATA,
    Column("trm_id", String(16)),
    Column("unyo_f_name", String(32)),
    Column("file_sts", String(2)),
    Column("kidou_date", DateTime),
)

ig_ui_sc_t = Table(
    "ig_ui_sc_t",
    IGAL_METADATA,
    Column("id", String(16)),
    Column("store", String(8)),
    Column("dlf_ip1", String(64)),
    Column("adsl_1", String(64)),
)

nbit_dllog = Table(
    "nbit_dllog",
    NBITS_METADATA,
    Column("term_id", String(16)),
    Column("log_date", DateTime),
    Column("file_id", String(16)),
    Column("status", String(2)),
)


def day_window(target: date) -> Tuple[datetime, datetime]:
    """Return the ``[start, end)`` datetimes covering ``target``."""
    start = datetime.combine(target, time.min)
    return start, start + timedelta(days=1)


def _in_window(column, target: date) -> ColumnElement[bool]:
    start, end = day_window(target)
    return (column >= start) & (column < end)


def store_code(column) -> ColumnElement[str]:
    """SQL counterpart of :func:`pgm_report.model.normalize_store_code`."""
    return func.substr(column, 3, 6)


def _distribution_join():
    return send_file_kanri.join(ig_ui_sc_t, send_file_kanri.c.trm_id == ig_ui_sc_t.c.id)


def _padded_store_join():
    return send_file_kanri.join(
        ig_ui_sc_t,
        send_file_kanri.c.trm_id == literal(STORE_ID_PAD, String) + ig_ui_sc_t.c.store,
    )


# IGAL counts -----------------------------------------------------------------


def distribution_total_count(target: date) -> Select:
    return (
        select(func.count())
        .select_from(_distribution_join())
        .where(
            send_file_kanri.c.unyo_f_name == DISTRIBUTION_JOB_NAME,
            _in_window(send_file_kanri.c.kidou_date, target),
        )
    )


def distribution_success_count(target: date) -> Select:
    return distribution_total_count(target).where(
        send_file_kanri.c.file_sts == DISTRIBUTION_SUCCESS_STATUS
    )


def failed_store_rows(target: date) -> Select:
    """Stores whose distribution ended in the fail status on ``target``."""
    return (
        select(
            send_file_kanri.c.trm_id.label("trm_id"),
            ig_ui_sc_t.c.dlf_ip1.label("dlf_ip1"),
            ig_ui_sc_t.c.adsl_1.label("adsl_1"),
            ig_ui_sc_t.c.store.label("store"),
        )
        .select_from(_padded_store_join())
        .where(
            send_file_kanri.c.unyo_f_name.like(DISTRIBUTION_JOB_NAME + "%"),
            send_file_kanri.c.file_sts == DISTRIBUTION_FAIL_STATUS,
            _in_window(send_file_kanri.c.kidou_date, target),
        )
    )


def failed_store_count(target: date) -> Select:
    return select(func.count()).select_from(failed_store_rows(target).subquery())


# Store sets ------------------------------------------------------------------


def distributed_store_codes(target: date) -> Select:
    """Distinct store codes IGAL distributed successfully on ``target``."""
    return (
        select(store_code(send_file_kanri.c.trm_id).label("store"))
        .select_from(_distribution_join())
        .where(
            send_file_kanri.c.unyo_f_name == DISTRIBUTION_JOB_NAME,
            send_file_kanri.c.file_sts == DISTRIBUTION_SUCCESS_STATUS,
            _in_window(send_file_kanri.c.kidou_date, target),
        )
        .distinct()
    )


def store_details(stores: Sequence[str]) -> Select:
    """Store master rows whose normalised id is one of ``stores``."""
    code = store_code(ig_ui_sc_t.c.id)
    return select(
        code.label("store"),
        ig_ui_sc_t.c.id.label("trm_id"),
        ig_ui_sc_t.c.dlf_ip1.label("dlf_ip1"),
        ig_ui_sc_t.c.adsl_1.label("adsl_1"),
    ).where(code.in_(list(stores)))


# NBITS -----------------------------------------------------------------------


def _retrieval_success(target: date):
    return (
        nbit_dllog.c.file_id == RETRIEVAL_FILE_ID,
        nbit_dllog.c.status == RETRIEVAL_SUCCESS_STATUS,
        _in_window(nbit_dllog.c.log_date, target),
    )


def retrieval_success_count(target: date) -> Select:
    return select(func.count()).select_from(nbit_dllog).where(*_retrieval_success(target))


def retrieved_store_codes(target: date) -> Select:
    """Distinct store codes NBITS retrieved successfully on ``target``."""
    return (
        select(store_code(nbit_dllog.c.term_id).label("store"))
        .where(*_retrieval_success(target))
        .distinct()
    )


__all__ = [
    "IGAL_METADATA",
    "NBITS_METADATA",
    "day_window",
    "distributed_store_codes",
    "distribution_success_count",
    "distribution_total_count",
    "failed_store_count",
    "failed_store_rows",
    "ig_ui_sc_t",
    "nbit_dllog",
    "retrieval_success_count",
    "retrieved_store_codes",
    "send_file_kanri",
    "store_code",
    "store_details",
]
