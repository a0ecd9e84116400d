"""
CSV decoding for the spreadsheet export.

This is a best-effort line scanner, not a full CSV grammar: a comma inside a
quoted field does not split it, but escaped quotes ("") and quoted fields that
span several lines are not supported.
"""

from __future__ import annotations

import re
from typing import List

_LINE_BREAK = re.compile(r"\r?\n")

# A comma splits only when an even number of quotes follows it on the line,
# i.e. when it sits outside any quoted field.
_FIELD_SEPARATOR = re.compile(r',(?=(?:(?:[^"]*"){2})*[^"]*$)')

_EDGE_QUOTE = re.compile(r'^"|"$')


def decode(text: str) -> List[List[str]]:
    """
    Split CSV text into rows of trimmed string fields.

    Whitespace-only lines are dropped rather than emitted as empty rows.
    The first row is the header; callers skip it when building records.

    Args:
        text: Raw CSV export body

    Returns:
        Rows in source order
    """
    rows: List[List[str]] = []
    for line in _LINE_BREAK.split(text):
        if not line.strip():
            continue
        fields = _FIELD_SEPARATOR.split(line)
        rows.append([_EDGE_QUOTE.sub("", field).strip() for field in fields])
    return rows
