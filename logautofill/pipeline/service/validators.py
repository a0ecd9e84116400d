"""
Validation Utilities

This module provides the record-level rules used before and after the
network boundary:
- Confidence tagging from uncertainty placeholders
- Required-field gate before submission
- Submission payload shaping for the spreadsheet script
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from logautofill.pipeline.errors import MissingRequiredField
from logautofill.pipeline.schema.log_record import (
    MISSING_VALUE,
    UNCERTAIN_CHAR,
    Confidence,
    LogRecord,
)


# ============================================================================
# CONFIDENCE TAGGING
# ============================================================================


def is_uncertain(value: Optional[str]) -> bool:
    return bool(value) and UNCERTAIN_CHAR in value


def tag_confidence(record: LogRecord) -> LogRecord:
    """
    Return a copy of the record with its confidence tag recomputed.

    A record is 'low' confidence when either identifier (scNo or dtrCode)
    still carries an uncertainty placeholder from extraction.

    Args:
        record: Record to tag (left untouched)

    Returns:
        LogRecord: New record with confidence set
    """
    low = is_uncertain(record.sc_no) or is_uncertain(record.dtr_code)
    return record.model_copy(
        update={"confidence": Confidence.LOW if low else Confidence.HIGH}
    )


# ============================================================================
# SUBMISSION GATE
# ============================================================================


def validate_for_submission(record: LogRecord) -> None:
    """
    Ensure a record carries the minimum key before it goes over the wire.

    Only scNo is required. Placeholders ('?') are accepted on purpose: the
    review step is where they get corrected.

    Raises:
        MissingRequiredField: If scNo is empty or blank
    """
    if not record.sc_no or not record.sc_no.strip():
        raise MissingRequiredField("scNo")


def validate_batch(records: Iterable[LogRecord]) -> None:
    """Apply validate_for_submission to every record, failing on the first."""
    for record in records:
        validate_for_submission(record)


# ============================================================================
# PAYLOAD SHAPING
# ============================================================================


def _clean(value: Optional[str]) -> str:
    if value is None:
        return MISSING_VALUE
    value = str(value).strip()
    return value or MISSING_VALUE


def to_submission_row(
    record: LogRecord, now: datetime, timestamp_format: str
) -> Dict[str, str]:
    """
    Build the JSON object the spreadsheet script expects for one record.

    Args:
        record: Record being submitted
        now: Submission time, used when the record has no timestamp
        timestamp_format: strftime pattern for the fallback timestamp

    Returns:
        dict: {scNo, dtrCode, feederName, location, timestamp}
    """
    return {
        "scNo": _clean(record.sc_no),
        "dtrCode": _clean(record.dtr_code),
        "feederName": _clean(record.feeder_name),
        "location": _clean(record.location),
        "timestamp": record.timestamp or now.strftime(timestamp_format),
    }


def to_submission_rows(
    records: Iterable[LogRecord], now: datetime, timestamp_format: str
) -> List[Dict[str, str]]:
    return [to_submission_row(r, now, timestamp_format) for r in records]
