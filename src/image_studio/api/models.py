"""Pydantic models for the studio HTTP API."""

from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, Field, StringConstraints

from image_studio.domain.sessions import BatchReport, DisplayState
from image_studio.services.prompts import EditKind, Gender

Prompt = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class UploadedImage(BaseModel):
    """One uploaded image encoded as a data URL."""

    name: str = Field(min_length=1)
    data_url: str


class UploadRequest(BaseModel):
    images: list[UploadedImage] = Field(min_length=1)


class EditRequest(BaseModel):
    prompt: Prompt
    kind: EditKind = EditKind.ADJUSTMENT


class BatchEditRequest(BaseModel):
    prompt: Prompt
    kind: EditKind = EditKind.ADJUSTMENT


class CropRequest(BaseModel):
    """Crop rectangle in natural image pixels."""

    x: int = Field(ge=0)
    y: int = Field(ge=0)
    width: int = Field(gt=0)
    height: int = Field(gt=0)


class PlacementPromptRequest(BaseModel):
    jewelry_type: str
    gender: Gender = Gender.FEMALE
    collection: str | None = None


class PlacementPromptResponse(BaseModel):
    prompt: str


class SessionView(BaseModel):
    """Display projection of one image session."""

    id: UUID
    current_url: str
    original_url: str
    current_name: str
    can_undo: bool
    can_redo: bool
    title: str | None = None
    description: str | None = None
    is_busy: bool
    is_enriching: bool
    version_index: int
    version_count: int

    @classmethod
    def from_display(cls, display: DisplayState) -> "SessionView":
        return cls(
            id=display.session_id,
            current_url=display.current.to_data_url(),
            original_url=display.original.to_data_url(),
            current_name=display.current.name,
            can_undo=display.can_undo,
            can_redo=display.can_redo,
            title=display.title,
            description=display.description,
            is_busy=display.is_busy,
            is_enriching=display.is_enriching,
            version_index=display.version_index,
            version_count=display.version_count,
        )


class SessionListResponse(BaseModel):
    sessions: list[SessionView]
    selected_id: UUID | None = None
    is_loading: bool = False


class BatchError(BaseModel):
    session_id: UUID
    reason: str


class BatchEditResponse(BaseModel):
    """Aggregate batch outcome with a single user-facing warning."""

    succeeded: int
    failed: int
    warning: str | None = None
    errors: list[BatchError] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: BatchReport) -> "BatchEditResponse":
        return cls(
            succeeded=report.succeeded,
            failed=report.failed,
            warning=report.warning,
            errors=[
                BatchError(session_id=session_id, reason=reason)
                for session_id, reason in report.errors
            ],
        )
