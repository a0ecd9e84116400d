"""
Parsing of the vision model's JSON payload into plain row dicts.
"""

from __future__ import annotations

import json
from typing import Dict, List

from loguru import logger

from logautofill.pipeline.errors import ExtractionProducedNoData

ROW_FIELDS = ("scNo", "dtrCode", "feederName", "location")


def strip_code_fence(payload: str) -> str:
    """Remove a surrounding ```json fence if the model added one anyway."""
    candidate = payload.strip()
    if candidate.startswith("```"):
        candidate = candidate.strip("`").strip()
        if candidate.startswith("json"):
            candidate = candidate[4:].strip()
    return candidate


def parse_rows(raw: str | None) -> List[Dict[str, str]]:
    """
    Parse the model's text into a list of row dicts.

    Every row gets all four fields as strings; missing or null values become
    empty strings so the review table can show (and the user fill) them.

    Args:
        raw: Text part returned by the model

    Returns:
        Non-empty list of rows

    Raises:
        ExtractionProducedNoData: If the text is empty, not JSON, not a list
            of objects, or an empty list
    """
    if not raw or not raw.strip():
        raise ExtractionProducedNoData()

    try:
        parsed = json.loads(strip_code_fence(raw))
    except json.JSONDecodeError as exc:
        logger.error("Vision model returned invalid JSON: {error}", error=exc)
        raise ExtractionProducedNoData() from exc

    # Some responses wrap the array in a single-key object
    if isinstance(parsed, dict):
        lists = [v for v in parsed.values() if isinstance(v, list)]
        parsed = lists[0] if len(lists) == 1 else None

    if not isinstance(parsed, list) or not parsed:
        logger.warning("Vision model returned no rows")
        raise ExtractionProducedNoData()

    rows: List[Dict[str, str]] = []
    for item in parsed:
        if not isinstance(item, dict):
            raise ExtractionProducedNoData()
        rows.append(
            {
                field: "" if item.get(field) is None else str(item[field]).strip()
                for field in ROW_FIELDS
            }
        )
    return rows
