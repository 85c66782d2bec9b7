"""Domain models for versioned image sessions."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from uuid import UUID, uuid4

from image_studio.domain.artifacts import Artifact
from image_studio.domain.errors import BatchPartialFailure


@dataclass(frozen=True)
class Version:
    """One committed state of an image plus optional enrichment."""

    artifact: Artifact
    id: UUID = field(default_factory=uuid4)
    title: str | None = None
    description: str | None = None

    @property
    def is_enriched(self) -> bool:
        return self.title is not None or self.description is not None

    def enriched(self, title: str, description: str) -> Version:
        """Return this version with enrichment attached, keeping its id."""
        return replace(self, title=title, description=description)


@dataclass(frozen=True)
class ImageSession:
    """An image's independent edit history and status flags."""

    id: UUID
    original: Artifact
    history: tuple[Version, ...]
    current_index: int = 0
    is_busy: bool = False
    pending_enrichments: int = 0

    @classmethod
    def start(cls, artifact: Artifact) -> ImageSession:
        """Create a session whose history holds only the pristine upload."""
        return cls(id=uuid4(), original=artifact, history=(Version(artifact),))

    @property
    def current(self) -> Version:
        return self.history[self.current_index]

    @property
    def is_enriching(self) -> bool:
        return self.pending_enrichments > 0


@dataclass(frozen=True)
class RegistryState:
    """Immutable snapshot of every active session."""

    sessions: dict[UUID, ImageSession] = field(default_factory=dict)
    selected_id: UUID | None = None
    revision: int = 0

    def get(self, session_id: UUID) -> ImageSession | None:
        return self.sessions.get(session_id)

    def with_session(self, session: ImageSession) -> RegistryState:
        """Return a snapshot with one session replaced, keeping upload order."""
        sessions = dict(self.sessions)
        sessions[session.id] = session
        return replace(self, sessions=sessions)

    def with_sessions(self, updated: list[ImageSession]) -> RegistryState:
        sessions = dict(self.sessions)
        for session in updated:
            sessions[session.id] = session
        return replace(self, sessions=sessions)

    @property
    def is_loading(self) -> bool:
        """Whether any session has a primary edit in flight."""
        return any(session.is_busy for session in self.sessions.values())


@dataclass(frozen=True)
class CropRegion:
    """Pixel rectangle in the coordinates of the current image."""

    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class DisplayState:
    """Read-only projection of one session for display."""

    session_id: UUID
    current: Artifact
    original: Artifact
    can_undo: bool
    can_redo: bool
    title: str | None
    description: str | None
    is_busy: bool
    is_enriching: bool
    version_index: int
    version_count: int


@dataclass(frozen=True)
class BatchReport:
    """Aggregate outcome of a batch edit."""

    succeeded: int
    failed: int
    errors: list[tuple[UUID, str]] = field(default_factory=list)

    @property
    def warning(self) -> str | None:
        if self.failed == 0:
            return None
        return f"{self.failed} image(s) could not be processed."

    def as_error(self) -> BatchPartialFailure | None:
        """Return the aggregate failure for reporting, if any image failed."""
        if self.failed == 0:
            return None
        return BatchPartialFailure(self)
