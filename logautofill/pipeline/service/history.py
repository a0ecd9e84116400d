"""
History mapping and search.

History is regenerated wholesale from the spreadsheet export on every refresh;
it is never merged with the previous snapshot.

Export columns, in order:
    service connection number, transformer code, feeder name, location, timestamp
"""

from __future__ import annotations

from typing import List, Sequence

from logautofill.pipeline.schema.log_record import LogRecord, SyncStatus

DEFAULT_TIMESTAMP = "Cloud"


def _cell(row: Sequence[str], index: int) -> str:
    return row[index] if index < len(row) and row[index] else ""


def rows_to_history(rows: List[List[str]], now_ms: int) -> List[LogRecord]:
    """
    Convert decoded CSV rows into read-only synced records.

    The header row is skipped, rows with neither scNo nor dtrCode are dropped
    and the result is reversed so the latest appended row comes first.

    Args:
        rows: Output of csv_decoder.decode, header included
        now_ms: Refresh time in epoch milliseconds, used in ids

    Returns:
        List of synced records, newest first
    """
    records: List[LogRecord] = []
    for index, row in enumerate(rows[1:]):
        record = LogRecord(
            id=f"sheet-{index}-{now_ms}",
            sc_no=_cell(row, 0),
            dtr_code=_cell(row, 1),
            feeder_name=_cell(row, 2),
            location=_cell(row, 3),
            sync_status=SyncStatus.SYNCED,
            timestamp=_cell(row, 4) or DEFAULT_TIMESTAMP,
        )
        if record.sc_no or record.dtr_code:
            records.append(record)
    records.reverse()
    return records


def search_history(
    history: List[LogRecord], query: str | None, limit: int = 30
) -> List[LogRecord]:
    """
    Filter history by a free-text query.

    An empty query returns a preview of the first ``limit`` records; otherwise
    every record with a case-insensitive substring match in scNo, dtrCode,
    feederName or location is returned.
    """
    q = (query or "").lower().strip()
    if not q:
        return history[:limit]
    return [
        record
        for record in history
        if q in record.sc_no.lower()
        or q in record.dtr_code.lower()
        or q in record.feeder_name.lower()
        or q in record.location.lower()
    ]
