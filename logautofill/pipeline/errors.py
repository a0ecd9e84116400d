"""
Error taxonomy for the log sync pipeline.

Collaborators raise these; the orchestrator catches them at its boundary and
turns them into the single user-visible banner message.
"""

from __future__ import annotations


class LogSyncError(Exception):
    """Base class for every failure surfaced to the user."""

    default_message = "Unexpected error."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class TransportUnavailable(LogSyncError):
    """History fetch or extraction call could not reach its endpoint."""

    default_message = "Cloud Sync: Repository currently offline."


class MissingRequiredField(LogSyncError):
    """Submission attempted without a service connection number."""

    default_message = "SC Number is required."

    def __init__(self, field: str = "scNo", message: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class ExtractionProducedNoData(LogSyncError):
    """The vision model returned empty or unparseable output."""

    default_message = (
        "Unable to parse handwritten data. Check image quality and try again."
    )


class VoiceServiceUnavailable(LogSyncError):
    """Speech capture is not available in the calling environment."""

    default_message = "Voice Services Unavailable."


class AppendAcknowledgmentMissing(LogSyncError):
    """The submission transport raised; no write can be assumed."""

    default_message = "Batch Sync Failure."


class InvalidTransition(LogSyncError):
    """An operation was requested in a state that does not accept it."""

    default_message = "Operation not allowed right now."
