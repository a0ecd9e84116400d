"""
Gemini client for handwritten log extraction.

This module sends photos of paper logs to the Gemini generateContent endpoint
and turns the structured JSON answer into draft log records. There is no
automatic retry: a failed extraction is reported and the user decides whether
to try again.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Union

import requests
from loguru import logger

from logautofill.pipeline.config.settings import Settings, get_settings
from logautofill.pipeline.errors import TransportUnavailable
from logautofill.pipeline.llm.prompts import (
    RESPONSE_SCHEMA,
    build_system_instruction,
    build_user_instruction,
)
from logautofill.pipeline.llm.response_parser import parse_rows
from logautofill.pipeline.llm.stub_generator import generate_stub_response
from logautofill.pipeline.schema.log_record import LogRecord, SyncStatus, new_record_id
from logautofill.pipeline.service.validators import tag_confidence
from logautofill.pipeline.utils.images import to_inline_image

ImageInput = Union[bytes, str]


def build_request_body(images: Sequence[ImageInput]) -> Dict:
    """
    Build the generateContent request body.

    All images go into a single user turn, followed by the instruction text,
    so the model treats them as one continuous log.
    """
    parts: List[Dict] = []
    for image in images:
        mime_type, data = to_inline_image(image)
        parts.append({"inlineData": {"mimeType": mime_type, "data": data}})
    parts.append({"text": build_user_instruction()})

    return {
        "systemInstruction": {"parts": [{"text": build_system_instruction()}]},
        "contents": [{"role": "user", "parts": parts}],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": RESPONSE_SCHEMA,
        },
    }


def call_gemini(
    images: Sequence[ImageInput], settings: Optional[Settings] = None
) -> str:
    """
    Send images to Gemini and return the raw text of the first candidate.

    Args:
        images: Image bytes or base64/data-URL strings
        settings: Optional settings override (tests)

    Returns:
        Raw JSON text produced by the model ("" if the model sent no text)

    Raises:
        TransportUnavailable: Missing API key (stub disabled), network error
            or non-200 response
    """
    settings = settings or get_settings()

    if not settings.gemini_api_key:
        if settings.allow_stub:
            logger.warning("LOGAUTOFILL_GEMINI_API_KEY missing; returning stub response")
            return generate_stub_response(len(images))
        raise TransportUnavailable("Vision extraction is not configured (missing API key).")

    base_url = settings.gemini_api_base.rstrip("/")
    url = f"{base_url}/models/{settings.gemini_model}:generateContent"
    headers = {
        "Content-Type": "application/json",
        "x-goog-api-key": settings.gemini_api_key,
    }
    body = build_request_body(images)

    logger.debug(
        "Calling Gemini model={model} with {count} image(s)",
        model=settings.gemini_model,
        count=len(images),
    )
    try:
        response = requests.post(
            url, headers=headers, json=body, timeout=settings.gemini_timeout_seconds
        )
    except requests.exceptions.RequestException as exc:
        logger.error("Gemini request failed: {error}", error=exc)
        raise TransportUnavailable(
            "Vision service unreachable. Check your connection and try again."
        ) from exc

    if response.status_code != 200:
        logger.error(
            "Gemini API error: {code} - {body}",
            code=response.status_code,
            body=response.text[:500],
        )
        raise TransportUnavailable(
            f"Vision service error ({response.status_code}). Try again later."
        )

    try:
        data = response.json()
    except ValueError:
        logger.error("Gemini returned a non-JSON envelope")
        return ""

    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    text = "".join(part.get("text", "") for part in parts)
    logger.debug("Gemini response received: {chars} chars", chars=len(text))
    return text


def build_draft_batch(rows: List[Dict[str, str]]) -> List[LogRecord]:
    """Turn parsed rows into confidence-tagged draft records with fresh ids."""
    return [
        tag_confidence(
            LogRecord(
                id=new_record_id("ext"),
                sc_no=row.get("scNo", ""),
                dtr_code=row.get("dtrCode", ""),
                feeder_name=row.get("feederName", ""),
                location=row.get("location", ""),
                sync_status=SyncStatus.DRAFT,
            )
        )
        for row in rows
    ]


def extract_log_records(
    images: Sequence[ImageInput], settings: Optional[Settings] = None
) -> List[LogRecord]:
    """
    Run extraction end to end: call the model, parse, tag.

    Raises:
        TransportUnavailable: The model could not be reached
        ExtractionProducedNoData: The model answered with nothing usable
    """
    raw = call_gemini(images, settings=settings)
    rows = parse_rows(raw)
    logger.info("Extracted {count} row(s) from {images} image(s)", count=len(rows), images=len(images))
    return build_draft_batch(rows)
