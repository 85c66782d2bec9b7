"""Error taxonomy for editing sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from image_studio.domain.sessions import BatchReport


class StudioError(Exception):
    """Base class for editing errors."""


class NoOpError(StudioError):
    """A history move whose guard is not satisfied."""


class AlreadyBusyError(StudioError):
    """A primary edit was requested while another is in flight."""

    def __init__(self, session_id: UUID) -> None:
        super().__init__(f"An edit is already in progress for session {session_id}")
        self.session_id = session_id


class SessionNotFoundError(StudioError, KeyError):
    """The requested session is not in the registry."""

    def __init__(self, session_id: UUID) -> None:
        super().__init__(f"Session {session_id} not found")
        self.session_id = session_id

    def __str__(self) -> str:
        return str(self.args[0])


class NoImagesError(StudioError):
    """An operation needs at least one uploaded image."""


class TransformError(StudioError):
    """The transform capability failed; carries the upstream message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidCropError(TransformError):
    """The crop region does not fit the image."""


class BatchPartialFailure(StudioError):
    """Some images in a batch could not be processed."""

    def __init__(self, report: BatchReport) -> None:
        super().__init__(f"{report.failed} image(s) could not be processed.")
        self.report = report
