from datetime import datetime
from typing import List

import pytest

from logautofill.pipeline.config.settings import Settings
from logautofill.pipeline.errors import AppendAcknowledgmentMissing, TransportUnavailable
from logautofill.pipeline.schema.log_record import LogRecord

SHEET_CSV = (
    "SC No,DTR Code,Feeder Name,Location,Timestamp\r\n"
    "2612345678901,DTR-102,Feeder North,\"Main St, Block 4\",\"1/2/2025, 9:00:00 AM\"\r\n"
    "\r\n"
    "2612345678902,T-500,Feeder South,Depot,\r\n"
)


class FakeStore:
    """In-memory stand-in for the spreadsheet client."""

    def __init__(self, csv_text: str = SHEET_CSV) -> None:
        self.csv_text = csv_text
        self.appended: List[List[dict]] = []
        self.fetch_calls = 0
        self.fail_append = False
        self.fail_fetch = False

    def fetch_history_csv(self) -> str:
        self.fetch_calls += 1
        if self.fail_fetch:
            raise TransportUnavailable()
        return self.csv_text

    def append_rows(self, rows: List[dict]) -> None:
        if self.fail_append:
            raise AppendAcknowledgmentMissing()
        self.appended.append(rows)


def make_record(record_id: str, sc_no: str = "2612345678901", dtr_code: str = "DTR-1", **extra) -> LogRecord:
    return LogRecord(id=record_id, sc_no=sc_no, dtr_code=dtr_code, **extra)


@pytest.fixture
def settings():
    return Settings(
        gemini_api_key="test-key",
        allow_stub=False,
        post_submit_delay_seconds=0,
        sheet_csv_url="https://sheets.example/export?format=csv&gid=0",
        script_url="https://script.example/exec",
    )


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2025, 1, 2, 9, 30, 0)
