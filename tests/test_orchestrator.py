import asyncio
import threading

import pytest
from conftest import make_record

from logautofill.pipeline.errors import InvalidTransition, TransportUnavailable
from logautofill.pipeline.schema.log_record import SyncStatus
from logautofill.pipeline.service.orchestrator import (
    BATCH_APPEND_FAILED,
    MANUAL_APPEND_FAILED,
    PROCESSING_FAILED,
    AppState,
    SyncOrchestrator,
)


def _records():
    return [
        make_record("r1", sc_no="2612345678901", dtr_code="DTR-1", location="Main St"),
        make_record("r2", sc_no="26123?678902", dtr_code="DTR-2"),
    ]


@pytest.fixture
def make_orchestrator(store, settings, fixed_clock):
    def factory(extractor=None):
        return SyncOrchestrator(
            store,
            extractor=extractor or (lambda images: _records()),
            settings=settings,
            clock=fixed_clock,
            post_submit_delay=0,
        )

    return factory


class FakeCapture:
    def __init__(self, transcript, gate=None):
        self.transcript = transcript
        self.gate = gate

    async def listen(self, language):
        if self.gate is not None:
            await self.gate.wait()
        return self.transcript


# ============================================================================
# EXTRACTION
# ============================================================================


def test_successful_extraction_enters_review(make_orchestrator):
    orch = make_orchestrator()
    asyncio.run(orch.process_images([b"img"]))

    assert orch.state.app_state is AppState.REVIEW
    assert [r.id for r in orch.state.batch] == ["r1", "r2"]
    assert all(r.sync_status is SyncStatus.DRAFT for r in orch.state.batch)
    assert orch.state.error is None


def test_empty_extraction_returns_to_idle_with_error(make_orchestrator):
    orch = make_orchestrator(extractor=lambda images: [])
    asyncio.run(orch.process_images([b"img"]))

    assert orch.state.app_state is AppState.IDLE
    assert orch.state.batch == []
    assert orch.state.error.startswith("Unable to parse handwritten data")


def test_transport_failure_surfaces_its_message(make_orchestrator):
    def extractor(images):
        raise TransportUnavailable("Vision service unreachable.")

    orch = make_orchestrator(extractor=extractor)
    asyncio.run(orch.process_images([b"img"]))

    assert orch.state.app_state is AppState.IDLE
    assert orch.state.error == "Vision service unreachable."


def test_unexpected_failure_uses_generic_message(make_orchestrator):
    def extractor(images):
        raise RuntimeError("boom")

    orch = make_orchestrator(extractor=extractor)
    asyncio.run(orch.process_images([b"img"]))

    assert orch.state.app_state is AppState.IDLE
    assert orch.state.error == PROCESSING_FAILED


def test_no_images_is_a_no_op(make_orchestrator):
    calls = []
    orch = make_orchestrator(extractor=lambda images: calls.append(images) or _records())
    asyncio.run(orch.process_images([]))

    assert calls == []
    assert orch.state.app_state is AppState.IDLE


def test_extraction_outside_idle_is_rejected(make_orchestrator):
    orch = make_orchestrator()
    asyncio.run(orch.process_images([b"img"]))

    with pytest.raises(InvalidTransition):
        asyncio.run(orch.process_images([b"img"]))


def test_review_edits_require_review_state(make_orchestrator):
    orch = make_orchestrator()
    with pytest.raises(InvalidTransition):
        orch.edit_record("r1", "location", "Depot")


# ============================================================================
# BATCH SUBMISSION
# ============================================================================


def test_submit_settles_to_idle_with_single_refresh(make_orchestrator, store):
    orch = make_orchestrator()

    async def scenario():
        await orch.process_images([b"img"])
        orch.edit_record("r2", "scNo", "2612345678902")
        await orch.submit_batch()
        assert orch.state.app_state is AppState.SUCCESS
        await orch.wait_settled()

    asyncio.run(scenario())

    assert len(store.appended) == 1
    rows = store.appended[0]
    assert [row["scNo"] for row in rows] == ["2612345678901", "2612345678902"]
    assert rows[0]["timestamp"] == "01/02/2025, 09:30:00 AM"
    assert rows[1]["location"] == "N/A"
    assert orch.state.app_state is AppState.IDLE
    assert orch.state.batch == []
    assert store.fetch_calls == 1
    assert len(orch.state.history) == 2


def test_failed_submit_keeps_batch_for_retry(make_orchestrator, store):
    orch = make_orchestrator()
    store.fail_append = True

    async def scenario():
        await orch.process_images([b"img"])
        await orch.submit_batch()

    asyncio.run(scenario())

    assert orch.state.app_state is AppState.REVIEW
    assert [r.id for r in orch.state.batch] == ["r1", "r2"]
    assert orch.state.error == BATCH_APPEND_FAILED
    assert store.fetch_calls == 0


def test_missing_sc_no_blocks_whole_batch(make_orchestrator, store):
    orch = make_orchestrator(
        extractor=lambda images: [make_record("r1"), make_record("r2", sc_no="")]
    )

    async def scenario():
        await orch.process_images([b"img"])
        await orch.submit_batch()

    asyncio.run(scenario())

    assert store.appended == []
    assert orch.state.app_state is AppState.REVIEW
    assert orch.state.error == "SC Number is required."


def test_submitting_emptied_batch_does_nothing(make_orchestrator, store):
    orch = make_orchestrator()

    async def scenario():
        await orch.process_images([b"img"])
        orch.remove_record("r1")
        orch.remove_record("r2")
        await orch.submit_batch()

    asyncio.run(scenario())

    assert store.appended == []
    assert orch.state.app_state is AppState.REVIEW


# ============================================================================
# MANUAL ENTRY & VOICE
# ============================================================================


def test_manual_submit_appends_one_row_and_clears_form(make_orchestrator, store):
    orch = make_orchestrator()
    orch.update_manual_form("scNo", "2612345678901")
    orch.update_manual_form("feederName", "North")

    async def scenario():
        await orch.submit_manual()
        assert orch.state.app_state is AppState.SUCCESS
        await orch.wait_settled()

    asyncio.run(scenario())

    assert store.appended == [
        [
            {
                "scNo": "2612345678901",
                "dtrCode": "N/A",
                "feederName": "North",
                "location": "N/A",
                "timestamp": "01/02/2025, 09:30:00 AM",
            }
        ]
    ]
    assert orch.state.manual_form.sc_no == ""
    assert orch.state.app_state is AppState.IDLE
    assert store.fetch_calls == 1


def test_failed_manual_submit_keeps_form(make_orchestrator, store):
    orch = make_orchestrator()
    store.fail_append = True
    orch.update_manual_form("scNo", "2612345678901")

    asyncio.run(orch.submit_manual())

    assert orch.state.app_state is AppState.IDLE
    assert orch.state.error == MANUAL_APPEND_FAILED
    assert orch.state.manual_form.sc_no == "2612345678901"


def test_manual_submit_without_sc_no_never_appends(make_orchestrator, store):
    orch = make_orchestrator()
    orch.update_manual_form("location", "Depot")

    asyncio.run(orch.submit_manual())

    assert store.appended == []
    assert orch.state.error == "SC Number is required."
    assert orch.state.app_state is AppState.IDLE


def test_voice_fills_normalized_value(make_orchestrator):
    orch = make_orchestrator()
    value = asyncio.run(orch.capture_voice("scNo", FakeCapture("double zero seven")))

    assert value == "007"
    assert orch.state.manual_form.sc_no == "007"
    assert orch.state.active_voice_field is None


def test_voice_without_capture_reports_unavailable(make_orchestrator):
    orch = make_orchestrator()
    assert asyncio.run(orch.capture_voice("dtrCode", None)) is None
    assert orch.state.error == "Voice Services Unavailable."


def test_only_one_voice_capture_at_a_time(make_orchestrator):
    orch = make_orchestrator()

    async def scenario():
        gate = asyncio.Event()
        first = asyncio.create_task(
            orch.capture_voice("location", FakeCapture("depot", gate))
        )
        await asyncio.sleep(0)
        assert orch.state.active_voice_field == "location"
        second = await orch.capture_voice("scNo", FakeCapture("one"))
        gate.set()
        return await first, second

    first, second = asyncio.run(scenario())

    assert first == "DEPOT"
    assert second is None
    assert orch.state.manual_form.sc_no == ""


# ============================================================================
# RESET & HISTORY
# ============================================================================


def test_reset_during_success_refreshes_once(make_orchestrator, store):
    orch = make_orchestrator()

    async def scenario():
        await orch.process_images([b"img"])
        await orch.submit_batch()
        await orch.reset()
        await orch.wait_settled()

    asyncio.run(scenario())

    assert orch.state.app_state is AppState.IDLE
    assert store.fetch_calls == 1


def test_extraction_finishing_after_reset_is_discarded(make_orchestrator):
    release = threading.Event()

    def slow_extractor(images):
        release.wait(timeout=5)
        return _records()

    orch = make_orchestrator(extractor=slow_extractor)

    async def scenario():
        task = asyncio.create_task(orch.process_images([b"img"]))
        await asyncio.sleep(0)
        assert orch.state.app_state is AppState.PROCESSING
        await orch.reset()
        release.set()
        await task

    asyncio.run(scenario())

    assert orch.state.app_state is AppState.IDLE
    assert orch.state.batch == []
    assert orch.state.error is None


def test_failed_refresh_keeps_previous_history(make_orchestrator, store):
    orch = make_orchestrator()
    asyncio.run(orch.refresh_history())
    assert len(orch.state.history) == 2

    store.fail_fetch = True
    asyncio.run(orch.refresh_history())

    assert len(orch.state.history) == 2
    assert orch.state.error == "Cloud Sync: Repository currently offline."
    assert orch.state.is_loading_history is False


def test_snapshot_uses_wire_names(make_orchestrator):
    orch = make_orchestrator()
    asyncio.run(orch.process_images([b"img"]))
    orch.dismiss_error()

    snap = orch.snapshot()
    assert snap["appState"] == "review"
    assert snap["batch"][1]["scNo"] == "26123?678902"
    assert snap["batch"][0]["syncStatus"] == "draft"
    assert snap["manualForm"] == {"scNo": "", "dtrCode": "", "feederName": "", "location": ""}
    assert snap["error"] is None
