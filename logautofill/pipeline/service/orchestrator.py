"""
Log Sync Orchestrator

This is the session-level coordinator. It owns the explicit state container
and is the only place where state transitions happen.

State machine:
    IDLE --images--> PROCESSING --rows--> REVIEW
    PROCESSING --extraction fails--> IDLE            (error, no batch kept)
    REVIEW --submit--> PROCESSING --ack--> SUCCESS --delay--> IDLE (+ refresh)
    REVIEW --submit fails--> REVIEW                  (batch kept for retry)
    IDLE --manual submit--> PROCESSING --ack--> SUCCESS --delay--> IDLE
    IDLE --manual submit fails--> IDLE               (form kept)
    any --reset--> IDLE                              (batch dropped, refresh)

Submission is fire-and-forget: an append that raises nothing is the only
acknowledgment. Records become 'synced' exclusively by re-reading the
spreadsheet export after the post-submit delay.

Every collaborator failure is caught here and stored as the single
user-visible error message; state is only written after a call returns.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from functools import partial
from typing import Callable, List, Optional, Protocol, Sequence

from loguru import logger

from logautofill.pipeline.config.settings import Settings, get_settings
from logautofill.pipeline.errors import (
    ExtractionProducedNoData,
    InvalidTransition,
    LogSyncError,
    MissingRequiredField,
    TransportUnavailable,
    VoiceServiceUnavailable,
)
from logautofill.pipeline.llm.gemini_client import ImageInput, extract_log_records
from logautofill.pipeline.schema.log_record import (
    LogRecord,
    ManualForm,
    SyncStatus,
    attribute_for,
    new_record_id,
    wire_name_for,
)

from . import reconciler
from .csv_decoder import decode
from .history import rows_to_history
from .validators import to_submission_rows, validate_batch, validate_for_submission
from .voice_normalizer import normalize

BATCH_APPEND_FAILED = "Batch Sync Failure."
MANUAL_APPEND_FAILED = "Cloud Append Failed. Check Permissions."
PROCESSING_FAILED = "Processing Error. Ensure clear handwriting visibility."


class AppState(str, Enum):
    IDLE = "idle"
    PROCESSING = "processing"
    REVIEW = "review"
    SUCCESS = "success"


class SheetStore(Protocol):
    def fetch_history_csv(self) -> str: ...

    def append_rows(self, rows: List[dict]) -> None: ...


class VoiceCapture(Protocol):
    async def listen(self, language: str) -> str: ...


Extractor = Callable[[Sequence[ImageInput]], List[LogRecord]]


@dataclass
class SessionState:
    """Everything the front-end renders, in one place."""

    app_state: AppState = AppState.IDLE
    batch: List[LogRecord] = field(default_factory=list)
    history: List[LogRecord] = field(default_factory=list)
    manual_form: ManualForm = field(default_factory=ManualForm)
    error: Optional[str] = None
    active_voice_field: Optional[str] = None
    is_loading_history: bool = False


class SyncOrchestrator:
    """Drives extraction, review, submission and history refresh."""

    def __init__(
        self,
        store: SheetStore,
        extractor: Optional[Extractor] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now,
        post_submit_delay: Optional[float] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.store = store
        self.extractor = extractor or partial(extract_log_records, settings=self.settings)
        self.clock = clock
        self.post_submit_delay = (
            self.settings.post_submit_delay_seconds
            if post_submit_delay is None
            else post_submit_delay
        )
        self.state = SessionState()
        # Bumped by reset(); results of requests issued under an older epoch
        # are dropped since in-flight calls cannot be cancelled.
        self._epoch = 0
        self._settle_task: Optional[asyncio.Task] = None

    # ========================================================================
    # TRANSITION HELPERS
    # ========================================================================

    def _require(self, *allowed: AppState) -> None:
        if self.state.app_state not in allowed:
            raise InvalidTransition(
                f"Not allowed while {self.state.app_state.value}"
            )

    def _transition(self, target: AppState) -> None:
        current = self.state.app_state
        if current is not target:
            logger.info(
                "Session state {old} -> {new}", old=current.value, new=target.value
            )
        self.state.app_state = target

    def _is_stale(self, epoch: int) -> bool:
        if epoch != self._epoch:
            logger.info("Discarding result of a request issued before reset")
            return True
        return False

    def _enter_success(self, epoch: int) -> None:
        self._transition(AppState.SUCCESS)
        self._settle_task = asyncio.create_task(self._settle(epoch))

    async def _settle(self, epoch: int) -> None:
        """Leave SUCCESS after the fixed delay and confirm via one refresh."""
        await asyncio.sleep(self.post_submit_delay)
        if self._is_stale(epoch) or self.state.app_state is not AppState.SUCCESS:
            return
        self.state.batch = []
        self._transition(AppState.IDLE)
        await self.refresh_history()

    async def wait_settled(self) -> None:
        """Wait for a pending post-submit settle, if any."""
        if self._settle_task is not None:
            await self._settle_task

    # ========================================================================
    # EXTRACTION & REVIEW
    # ========================================================================

    async def process_images(self, images: Sequence[ImageInput]) -> None:
        """
        Run extraction on captured images.

        Ends in REVIEW with a non-empty batch, or in IDLE with an error.
        """
        self._require(AppState.IDLE)
        if not images:
            return

        epoch = self._epoch
        self.state.error = None
        self._transition(AppState.PROCESSING)

        try:
            records = await asyncio.to_thread(self.extractor, list(images))
        except LogSyncError as exc:
            if self._is_stale(epoch):
                return
            logger.warning("Extraction failed: {error}", error=exc.message)
            self._fail_extraction(exc.message)
            return
        except Exception as exc:  # noqa: BLE001
            if self._is_stale(epoch):
                return
            logger.exception("Unexpected extraction error: {error}", error=exc)
            self._fail_extraction(PROCESSING_FAILED)
            return

        if self._is_stale(epoch):
            return
        if not records:
            self._fail_extraction(ExtractionProducedNoData().message)
            return

        self.state.batch = [
            r.model_copy(update={"sync_status": SyncStatus.DRAFT}) for r in records
        ]
        self._transition(AppState.REVIEW)

    def _fail_extraction(self, message: str) -> None:
        self.state.batch = []
        self.state.error = message
        self._transition(AppState.IDLE)

    def edit_record(self, record_id: str, field_name: str, value: str) -> None:
        self._require(AppState.REVIEW)
        self.state.batch = reconciler.edit_field(
            self.state.batch, record_id, field_name, value
        )

    def remove_record(self, record_id: str) -> None:
        self._require(AppState.REVIEW)
        self.state.batch = reconciler.remove_record(self.state.batch, record_id)

    # ========================================================================
    # SUBMISSION
    # ========================================================================

    async def submit_batch(self) -> None:
        """Append the reviewed batch; keep it intact if anything fails."""
        self._require(AppState.REVIEW)
        batch = list(self.state.batch)
        if not batch:
            return

        try:
            validate_batch(batch)
        except MissingRequiredField as exc:
            self.state.error = exc.message
            return

        epoch = self._epoch
        self.state.error = None
        self._transition(AppState.PROCESSING)

        rows = to_submission_rows(batch, self.clock(), self.settings.timestamp_format)
        try:
            await asyncio.to_thread(self.store.append_rows, rows)
        except Exception as exc:  # noqa: BLE001
            if self._is_stale(epoch):
                return
            logger.error("Batch append failed: {error}", error=exc)
            self.state.error = BATCH_APPEND_FAILED
            self._transition(AppState.REVIEW)
            return

        if self._is_stale(epoch):
            return
        logger.info("Batch of {count} record(s) sent", count=len(rows))
        self._enter_success(epoch)

    def update_manual_form(self, field_name: str, value: str) -> None:
        self._require(AppState.IDLE)
        setattr(self.state.manual_form, attribute_for(field_name), value)

    async def submit_manual(self) -> None:
        """Append the manual form as one pending record."""
        self._require(AppState.IDLE)
        form = self.state.manual_form
        now = self.clock()
        record = LogRecord(
            id=new_record_id("manual"),
            sc_no=form.sc_no,
            dtr_code=form.dtr_code,
            feeder_name=form.feeder_name,
            location=form.location,
            sync_status=SyncStatus.PENDING,
            timestamp=now.strftime(self.settings.timestamp_format),
        )

        try:
            validate_for_submission(record)
        except MissingRequiredField as exc:
            self.state.error = exc.message
            return

        epoch = self._epoch
        self.state.error = None
        self._transition(AppState.PROCESSING)

        rows = to_submission_rows([record], now, self.settings.timestamp_format)
        try:
            await asyncio.to_thread(self.store.append_rows, rows)
        except Exception as exc:  # noqa: BLE001
            if self._is_stale(epoch):
                return
            logger.error("Manual append failed: {error}", error=exc)
            self.state.error = MANUAL_APPEND_FAILED
            self._transition(AppState.IDLE)
            return

        if self._is_stale(epoch):
            return
        self.state.manual_form = ManualForm()
        self._enter_success(epoch)

    # ========================================================================
    # VOICE INPUT
    # ========================================================================

    async def capture_voice(
        self, field_name: str, capture: Optional[VoiceCapture]
    ) -> Optional[str]:
        """
        Dictate one manual-form field.

        Only one capture runs at a time; a request made while another field
        is listening is ignored and returns None.

        Returns:
            The normalized value written to the form, or None
        """
        self._require(AppState.IDLE)
        wire_field = wire_name_for(field_name)

        if capture is None:
            self.state.error = VoiceServiceUnavailable().message
            return None
        if self.state.active_voice_field is not None:
            logger.debug(
                "Voice capture already active for {field}",
                field=self.state.active_voice_field,
            )
            return None

        self.state.active_voice_field = wire_field
        try:
            transcript = await capture.listen(self.settings.voice_language)
        except LogSyncError as exc:
            self.state.error = exc.message
            return None
        except Exception as exc:  # noqa: BLE001
            # Recognition errors (no speech, aborted) only end the capture
            logger.warning("Voice capture failed: {error}", error=exc)
            return None
        finally:
            self.state.active_voice_field = None

        value = normalize(transcript, wire_field)
        setattr(self.state.manual_form, attribute_for(wire_field), value)
        logger.debug("Voice input for {field}: {value}", field=wire_field, value=value)
        return value

    # ========================================================================
    # HISTORY & SESSION CONTROL
    # ========================================================================

    async def refresh_history(self) -> None:
        """Replace history with a fresh decode of the spreadsheet export."""
        self.state.is_loading_history = True
        try:
            csv_text = await asyncio.to_thread(self.store.fetch_history_csv)
            history = rows_to_history(decode(csv_text), int(time.time() * 1000))
        except LogSyncError as exc:
            logger.warning("History refresh failed: {error}", error=exc.message)
            self.state.error = exc.message
            return
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected history refresh error: {error}", error=exc)
            self.state.error = TransportUnavailable().message
            return
        finally:
            self.state.is_loading_history = False

        self.state.history = history
        logger.info("History refreshed: {count} record(s)", count=len(history))

    async def reset(self) -> None:
        """Abandon whatever is in progress and return to IDLE."""
        self._epoch += 1
        self.state.batch = []
        self.state.error = None
        self._transition(AppState.IDLE)
        await self.refresh_history()

    def dismiss_error(self) -> None:
        self.state.error = None

    def snapshot(self) -> dict:
        """Serializable view of the session for the front-end."""
        state = self.state
        return {
            "appState": state.app_state.value,
            "batch": [record.wire() for record in state.batch],
            "historyCount": len(state.history),
            "manualForm": state.manual_form.model_dump(by_alias=True),
            "error": state.error,
            "activeVoiceField": state.active_voice_field,
            "isLoadingHistory": state.is_loading_history,
        }
