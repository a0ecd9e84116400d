"""
Voice Transcript Normalization

Turns a single recognized utterance into the value stored in a manual-entry
field. Spoken number words become digits, and the two identifier fields get
stricter cleaning:

- scNo: whitespace removed, then every non-digit removed
- dtrCode: whitespace removed (letters kept, e.g. "DTR5")
- everything else: substitution only

Substitution is plain text replacement, longest phrase first, so compound
entries ("double zero") are consumed before the words they contain ("zero").
Ties are broken alphabetically to keep the order fixed.

Example:
    "double zero seven" -> "00 seven" -> "00 7" -> "007" (scNo)
"""

from __future__ import annotations

import re
from typing import Dict, List, Tuple

SC_NO_FIELD = "scNo"
DTR_CODE_FIELD = "dtrCode"

WORD_DIGITS: Dict[str, str] = {
    "zero": "0",
    "one": "1",
    "two": "2",
    "three": "3",
    "four": "4",
    "five": "5",
    "six": "6",
    "seven": "7",
    "eight": "8",
    "nine": "9",
    "oh": "0",
    "nought": "0",
    "double zero": "00",
    "double o": "00",
    "triple zero": "000",
    "triple o": "000",
}

SUBSTITUTION_ORDER: List[Tuple[str, str]] = sorted(
    WORD_DIGITS.items(), key=lambda item: (-len(item[0]), item[0])
)

_WHITESPACE = re.compile(r"\s+")
_NON_DIGIT = re.compile(r"\D")


def replace_number_words(transcript: str) -> str:
    """Replace every spoken number word with its digits."""
    text = transcript.lower()
    for word, digits in SUBSTITUTION_ORDER:
        text = text.replace(word, digits)
    return text


def normalize(raw_transcript: str, target_field: str) -> str:
    """
    Clean a voice transcript for the given manual-entry field.

    No length check happens here; a short or long scNo is reported by the
    validator, not fixed up.

    Args:
        raw_transcript: Final (non-interim) recognition result
        target_field: Wire name of the destination field

    Returns:
        str: Upper-cased cleaned value
    """
    text = replace_number_words(raw_transcript)

    if target_field in (SC_NO_FIELD, DTR_CODE_FIELD):
        text = _WHITESPACE.sub("", text)
        if target_field == SC_NO_FIELD:
            text = _NON_DIGIT.sub("", text)

    return text.upper()
