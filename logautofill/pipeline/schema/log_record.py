"""
Log record schema.

Wire names are camelCase (``scNo``, ``dtrCode``...) to match the browser
front-end and the spreadsheet script; Python code uses snake_case attributes.
"""

from __future__ import annotations

import itertools
import time
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

UNCERTAIN_CHAR = "?"
MISSING_VALUE = "N/A"

# Wire name -> attribute name for the fields a user may type into.
EDITABLE_FIELDS: Dict[str, str] = {
    "scNo": "sc_no",
    "dtrCode": "dtr_code",
    "feederName": "feeder_name",
    "location": "location",
}

_id_sequence = itertools.count(1)


class SyncStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    SYNCED = "synced"


class Confidence(str, Enum):
    HIGH = "high"
    LOW = "low"


class LogRecord(BaseModel):
    """One row of an equipment log sheet."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    sc_no: str = Field(default="", alias="scNo")
    dtr_code: str = Field(default="", alias="dtrCode")
    feeder_name: str = Field(default="", alias="feederName")
    location: str = ""
    confidence: Optional[Confidence] = None
    sync_status: SyncStatus = Field(default=SyncStatus.DRAFT, alias="syncStatus")
    timestamp: Optional[str] = None

    def wire(self) -> dict:
        """Serialize with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


class ManualForm(BaseModel):
    """Values typed (or dictated) into the manual entry form."""

    model_config = ConfigDict(populate_by_name=True)

    sc_no: str = Field(default="", alias="scNo")
    dtr_code: str = Field(default="", alias="dtrCode")
    feeder_name: str = Field(default="", alias="feederName")
    location: str = ""


def attribute_for(field: str) -> str:
    """
    Resolve a wire field name (or attribute name) to the model attribute.

    Raises:
        ValueError: If the field is not user-editable
    """
    if field in EDITABLE_FIELDS:
        return EDITABLE_FIELDS[field]
    if field in EDITABLE_FIELDS.values():
        return field
    raise ValueError(f"Field '{field}' is not editable")


def wire_name_for(field: str) -> str:
    """Inverse of attribute_for: return the camelCase wire name."""
    attribute = attribute_for(field)
    return next(wire for wire, attr in EDITABLE_FIELDS.items() if attr == attribute)


def new_record_id(prefix: str) -> str:
    """Mint a session-unique id; ids are never handed out twice."""
    return f"{prefix}-{int(time.time() * 1000)}-{next(_id_sequence)}"
