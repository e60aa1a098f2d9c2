from datetime import datetime

import pytest
from sqlalchemy import create_engine

from pgm_report.db_gateway import DataSource
from pgm_report.queries import (
    IGAL_METADATA,
    NBITS_METADATA,
    ig_ui_sc_t,
    nbit_dllog,
    send_file_kanri,
)


STORE_MASTER = [
    {"id": "00100001", "store": "100001", "dlf_ip1": "10.0.0.1", "adsl_1": None},
    {"id": "00100002", "store": "100002", "dlf_ip1": "10.0.0.2", "adsl_1": "192.168.0.2"},
    {"id": "00100003", "store": "100003", "dlf_ip1": "10.0.0.3", "adsl_1": "192.168.0.3"},
    {"id": "00100004", "store": "100004", "dlf_ip1": "10.0.0.4", "adsl_1": "192.168.0.4"},
]

DISTRIBUTIONS = [
    # Successful distributions on the report date
    {"trm_id": "00100001", "unyo_f_name": "SDCDGETR", "file_sts": "8", "kidou_date": datetime(2025, 12, 17, 10, 0)},
    {"trm_id": "00100002", "unyo_f_name": "SDCDGETR", "file_sts": "8", "kidou_date": datetime(2025, 12, 17, 11, 30)},
    {"trm_id": "00100003", "unyo_f_name": "SDCDGETR", "file_sts": "8", "kidou_date": datetime(2025, 12, 17, 23, 59, 59)},
    # Failed distribution (job name matched by prefix)
    {"trm_id": "00100004", "unyo_f_name": "SDCDGETR2", "file_sts": "7", "kidou_date": datetime(2025, 12, 17, 9, 0)},
    # Next day: outside the window
    {"trm_id": "00100001", "unyo_f_name": "SDCDGETR", "file_sts": "8", "kidou_date": datetime(2025, 12, 18, 0, 0)},
    # No store master row: dropped by the join
    {"trm_id": "00100009", "unyo_f_name": "SDCDGETR", "file_sts": "8", "kidou_date": datetime(2025, 12, 17, 8, 0)},
]

RETRIEVALS = [
    {"term_id": "NB100002", "log_date": datetime(2025, 12, 17, 12, 0), "file_id": "SDTDRCV3", "status": "2"},
    {"term_id": "NB100003", "log_date": datetime(2025, 12, 17, 13, 0), "file_id": "SDTDRCV3", "status": "2"},
    # Retrieval not successful
    {"term_id": "NB100001", "log_date": datetime(2025, 12, 17, 12, 0), "file_id": "SDTDRCV3", "status": "1"},
    # Successful, but the day before
    {"term_id": "NB100001", "log_date": datetime(2025, 12, 16, 23, 59), "file_id": "SDTDRCV3", "status": "2"},
]


def _seed(url, metadata, table_rows):
    engine = create_engine(url)
    metadata.create_all(engine)
    with engine.begin() as conn:
        for table, rows in table_rows:
            if rows:
                conn.execute(table.insert(), rows)
    return engine


@pytest.fixture
def igal_url(tmp_path):
    url = f"sqlite:///{tmp_path / 'igal.db'}"
    engine = _seed(url, IGAL_METADATA, [(ig_ui_sc_t, STORE_MASTER), (send_file_kanri, DISTRIBUTIONS)])
    engine.dispose()
    return url


@pytest.fixture
def nbits_url(tmp_path):
    url = f"sqlite:///{tmp_path / 'nbits.db'}"
    engine = _seed(url, NBITS_METADATA, [(nbit_dllog, RETRIEVALS)])
    engine.dispose()
    return url


@pytest.fixture
def igal(igal_url):
    source = DataSource.from_url("IGAL", igal_url)
    yield source
    source.dispose()


@pytest.fixture
def nbits(nbits_url):
    source = DataSource.from_url("NBITS", nbits_url)
    yield source
    source.dispose()


@pytest.fixture
def empty_nbits(tmp_path):
    url = f"sqlite:///{tmp_path / 'nbits_empty.db'}"
    _seed(url, NBITS_METADATA, []).dispose()
    source = DataSource.from_url("NBITS", url)
    yield source
    source.dispose()
