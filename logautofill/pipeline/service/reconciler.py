"""
Review table edits.

Both operations are pure: they take the current batch snapshot and return the
next one. Records are frozen models, so untouched rows are shared as-is and
the edited row is a fresh copy with the same id.
"""

from __future__ import annotations

from typing import List

from logautofill.pipeline.schema.log_record import LogRecord, attribute_for

from .validators import tag_confidence

_TAGGED_ATTRIBUTES = {"sc_no", "dtr_code"}


def edit_field(
    batch: List[LogRecord], record_id: str, field: str, value: str
) -> List[LogRecord]:
    """
    Replace one field of the record matching ``record_id``.

    Editing scNo or dtrCode re-tags confidence so a corrected placeholder
    clears the low-confidence flag. Unknown ids leave the batch unchanged.

    Raises:
        ValueError: If ``field`` is not a user-editable field
    """
    attribute = attribute_for(field)
    updated: List[LogRecord] = []
    for record in batch:
        if record.id != record_id:
            updated.append(record)
            continue
        edited = record.model_copy(update={attribute: value})
        if attribute in _TAGGED_ATTRIBUTES:
            edited = tag_confidence(edited)
        updated.append(edited)
    return updated


def remove_record(batch: List[LogRecord], record_id: str) -> List[LogRecord]:
    """Drop the record matching ``record_id``, keeping the others in order."""
    return [record for record in batch if record.id != record_id]
