"""
Session API Endpoints

This module provides the HTTP interface the browser front-end drives.

Endpoints:
- GET    /api/session                   → state snapshot
- POST   /api/session/extract           → upload log photos, run extraction
- PATCH  /api/session/batch/{record_id} → edit one review-table cell
- DELETE /api/session/batch/{record_id} → drop one review-table row
- POST   /api/session/batch/submit      → append the reviewed batch
- PUT    /api/session/manual            → set one manual-form field
- POST   /api/session/manual/submit     → append the manual form
- POST   /api/session/voice             → normalize a dictated transcript
- POST   /api/session/reset             → abandon work, refresh history
- POST   /api/session/error/dismiss     → clear the error banner
- GET    /api/history                   → searchable synced records
- POST   /api/history/refresh           → re-read the spreadsheet export

Pipeline failures are not HTTP errors: they come back in the snapshot's
"error" field. HTTP errors are reserved for malformed requests (400/422) and
operations the current state does not accept (409).
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from pydantic import BaseModel

from logautofill.pipeline.errors import InvalidTransition
from logautofill.pipeline.service.history import search_history
from logautofill.pipeline.service.orchestrator import SyncOrchestrator

router = APIRouter(prefix="/api", tags=["session"])

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/webp",
    "image/heic",
    "image/heif",
}


class FieldUpdate(BaseModel):
    field: str
    value: str


class VoiceInput(BaseModel):
    field: str
    transcript: Optional[str] = None


class BrowserTranscript:
    """Voice capture that already happened in the browser."""

    def __init__(self, transcript: str) -> None:
        self.transcript = transcript

    async def listen(self, language: str) -> str:
        return self.transcript


def get_orchestrator(request: Request) -> SyncOrchestrator:
    return request.app.state.orchestrator


def _conflict(exc: InvalidTransition) -> HTTPException:
    return HTTPException(status_code=409, detail=exc.message)


def _bad_field(exc: ValueError) -> HTTPException:
    return HTTPException(status_code=422, detail=str(exc))


@router.get("/session")
async def get_session(orchestrator: SyncOrchestrator = Depends(get_orchestrator)) -> dict:
    return orchestrator.snapshot()


@router.post("/session/extract")
async def extract_images(
    request: Request,
    files: List[UploadFile] = File(...),
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
) -> dict:
    """
    Send one or more photos of a paper log to the vision model.

    All files are treated as pages of the same log. On success the session
    is in 'review' with the extracted rows in "batch"; on failure it is back
    in 'idle' with "error" set.

    Raises:
        HTTPException 400: Unsupported file type or oversized upload
        HTTPException 409: Session is not idle
    """
    max_bytes = request.app.state.settings.max_upload_bytes
    images: List[bytes] = []
    for upload in files:
        if upload.content_type not in ALLOWED_IMAGE_TYPES:
            raise HTTPException(
                status_code=400,
                detail=(
                    f"Unsupported file type: {upload.content_type}. "
                    "Allowed: JPG, PNG, WEBP, HEIC"
                ),
            )
        content = await upload.read()
        if len(content) > max_bytes:
            raise HTTPException(
                status_code=400, detail=f"{upload.filename} exceeds {max_bytes} bytes"
            )
        images.append(content)

    try:
        await orchestrator.process_images(images)
    except InvalidTransition as exc:
        raise _conflict(exc) from exc
    return orchestrator.snapshot()


@router.patch("/session/batch/{record_id}")
async def edit_batch_record(
    record_id: str,
    update: FieldUpdate,
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
) -> dict:
    try:
        orchestrator.edit_record(record_id, update.field, update.value)
    except InvalidTransition as exc:
        raise _conflict(exc) from exc
    except ValueError as exc:
        raise _bad_field(exc) from exc
    return orchestrator.snapshot()


@router.delete("/session/batch/{record_id}")
async def remove_batch_record(
    record_id: str, orchestrator: SyncOrchestrator = Depends(get_orchestrator)
) -> dict:
    try:
        orchestrator.remove_record(record_id)
    except InvalidTransition as exc:
        raise _conflict(exc) from exc
    return orchestrator.snapshot()


@router.post("/session/batch/submit")
async def submit_batch(orchestrator: SyncOrchestrator = Depends(get_orchestrator)) -> dict:
    try:
        await orchestrator.submit_batch()
    except InvalidTransition as exc:
        raise _conflict(exc) from exc
    return orchestrator.snapshot()


@router.put("/session/manual")
async def update_manual_field(
    update: FieldUpdate, orchestrator: SyncOrchestrator = Depends(get_orchestrator)
) -> dict:
    try:
        orchestrator.update_manual_form(update.field, update.value)
    except InvalidTransition as exc:
        raise _conflict(exc) from exc
    except ValueError as exc:
        raise _bad_field(exc) from exc
    return orchestrator.snapshot()


@router.post("/session/manual/submit")
async def submit_manual(orchestrator: SyncOrchestrator = Depends(get_orchestrator)) -> dict:
    try:
        await orchestrator.submit_manual()
    except InvalidTransition as exc:
        raise _conflict(exc) from exc
    return orchestrator.snapshot()


@router.post("/session/voice")
async def voice_input(
    voice: VoiceInput, orchestrator: SyncOrchestrator = Depends(get_orchestrator)
) -> dict:
    """
    Store a dictated value in the manual form.

    The browser performs speech recognition and posts the final transcript.
    A request without a transcript means recognition is unavailable on the
    device and is reported through the error banner.
    """
    capture = BrowserTranscript(voice.transcript) if voice.transcript is not None else None
    try:
        await orchestrator.capture_voice(voice.field, capture)
    except InvalidTransition as exc:
        raise _conflict(exc) from exc
    except ValueError as exc:
        raise _bad_field(exc) from exc
    return orchestrator.snapshot()


@router.post("/session/reset")
async def reset_session(orchestrator: SyncOrchestrator = Depends(get_orchestrator)) -> dict:
    await orchestrator.reset()
    return orchestrator.snapshot()


@router.post("/session/error/dismiss")
async def dismiss_error(orchestrator: SyncOrchestrator = Depends(get_orchestrator)) -> dict:
    orchestrator.dismiss_error()
    return orchestrator.snapshot()


@router.get("/history")
async def get_history(
    request: Request,
    q: Optional[str] = None,
    orchestrator: SyncOrchestrator = Depends(get_orchestrator),
) -> dict:
    limit = request.app.state.settings.history_preview_limit
    records = search_history(orchestrator.state.history, q, limit=limit)
    return {
        "records": [record.wire() for record in records],
        "total": len(orchestrator.state.history),
        "isLoading": orchestrator.state.is_loading_history,
    }


@router.post("/history/refresh")
async def refresh_history(orchestrator: SyncOrchestrator = Depends(get_orchestrator)) -> dict:
    await orchestrator.refresh_history()
    return orchestrator.snapshot()
