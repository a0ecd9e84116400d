"""
Prompt and schema for handwritten log extraction.

The vision model reads photos of paper equipment logs and returns one JSON
object per table row. Uncertain characters are kept as '?' at their position
instead of being guessed, so the review table can highlight them.
"""

from __future__ import annotations

from typing import Dict

# ============================================================================
# SCHEMA DEFINITION
# ============================================================================

# Gemini structured-output schema: an array of row objects, all four fields
# required and typed as strings.
RESPONSE_SCHEMA: Dict = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "scNo": {"type": "STRING", "description": "13-digit SC number"},
            "dtrCode": {"type": "STRING", "description": "DTR ID"},
            "feederName": {"type": "STRING", "description": "Feeder"},
            "location": {"type": "STRING", "description": "Site location"},
        },
        "required": ["scNo", "dtrCode", "feederName", "location"],
    },
}


# ============================================================================
# PROMPT BUILDERS
# ============================================================================


def build_system_instruction() -> str:
    """
    Build the system instruction that fixes the row schema and the rules
    for uncertain handwriting.

    Returns:
        str: System instruction text
    """
    return (
        "You are an expert Industrial Data Extraction Engine. "
        "Analyze images of handwritten paper logs and extract rows into structured data.\n\n"
        "Data Schema:\n"
        "- scNo: Service Connection Number. A strict 13-digit sequence (e.g., 2612345678901).\n"
        "- dtrCode: Transformer identifier. Often alphanumeric (e.g., DTR-102, T-500).\n"
        "- feederName: Electrical feeder description.\n"
        "- location: Physical site or address details.\n\n"
        "Critical Processing Rules:\n"
        "1. PRECISION: SC NO must be 13 digits. If digits are missing or unclear, use '?' "
        "at the specific position (e.g., '261234?678901').\n"
        "2. STRUCTURE: Detect the rows in the paper table. Each row on paper corresponds "
        "to one JSON object.\n"
        "3. CLEANING: Remove any leading/trailing whitespace or extra symbols from the handwriting.\n"
        "4. HANDWRITING: Use visual context to distinguish between '5' and 'S', '0' and 'O', "
        "'1' and 'I' or 'l'.\n"
        "5. MULTI-IMAGE: Treat all provided images as a single continuous log.\n"
        "6. OUTPUT: Provide only a JSON array. No explanations or conversational text."
    )


def build_user_instruction() -> str:
    return "Extract all rows from these log sheets into the specified JSON format."
