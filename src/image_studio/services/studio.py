"""Operations exposed to the display layer."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from uuid import UUID

from image_studio.domain.artifacts import Artifact, extension_for, file_stem
from image_studio.domain.errors import NoOpError, SessionNotFoundError
from image_studio.domain.sessions import (
    BatchReport,
    CropRegion,
    DisplayState,
    ImageSession,
    RegistryState,
)
from image_studio.services import history
from image_studio.services.batch import BatchCoordinator
from image_studio.services.editing import EditExecutor
from image_studio.services.enrichment import EnrichmentTrigger
from image_studio.services.prompts import EditKind, Gender, build_placement_prompt
from image_studio.services.registry import SessionRegistry
from image_studio.services.transforms import ImageTransformService

logger = logging.getLogger(__name__)


@dataclass
class StudioService:
    """Facade over the registry, edit executor and batch coordinator."""

    registry: SessionRegistry
    editor: EditExecutor
    batch: BatchCoordinator
    enrichment: EnrichmentTrigger
    brand_name: str = "Parakkat Jewels"

    @classmethod
    def create(
        cls, transforms: ImageTransformService, brand_name: str = "Parakkat Jewels"
    ) -> "StudioService":
        """Wire a studio around a transform service."""
        registry = SessionRegistry()
        enrichment = EnrichmentTrigger(registry=registry, transforms=transforms)
        return cls(
            registry=registry,
            editor=EditExecutor(registry, transforms, enrichment),
            batch=BatchCoordinator(registry, transforms, enrichment),
            enrichment=enrichment,
            brand_name=brand_name,
        )

    def create_sessions(self, artifacts: list[Artifact]) -> RegistryState:
        """Replace all sessions with the uploaded images, selecting the first."""
        return self.registry.create_sessions(artifacts)

    def start_over(self) -> None:
        self.registry.clear()
        logger.info("Cleared all image sessions")

    def select_session(self, session_id: UUID) -> None:
        self.registry.select(session_id)

    def snapshot(self) -> RegistryState:
        """Return one consistent view of every session."""
        return self.registry.snapshot()

    @property
    def selected_id(self) -> UUID | None:
        return self.registry.snapshot().selected_id

    @property
    def is_loading(self) -> bool:
        return self.registry.snapshot().is_loading

    async def submit_edit(
        self, session_id: UUID, prompt: str, kind: EditKind = EditKind.ADJUSTMENT
    ) -> DisplayState:
        """Run a primary edit on one image."""
        await self.editor.execute(session_id, prompt, kind)
        return self._require_display(session_id)

    async def submit_batch_edit(
        self, prompt: str, kind: EditKind = EditKind.ADJUSTMENT
    ) -> BatchReport:
        """Run the same edit on every image."""
        return await self.batch.execute_all(prompt, kind)

    def submit_crop(self, session_id: UUID, region: CropRegion) -> DisplayState:
        self.editor.crop(session_id, region)
        return self._require_display(session_id)

    def undo(self, session_id: UUID) -> DisplayState | None:
        return self._navigate(session_id, history.undo)

    def redo(self, session_id: UUID) -> DisplayState | None:
        return self._navigate(session_id, history.redo)

    def reset(self, session_id: UUID) -> DisplayState | None:
        return self._navigate(session_id, history.reset)

    def get_display_state(self, session_id: UUID) -> DisplayState | None:
        """Project one session from a single snapshot."""
        session = self.registry.snapshot().get(session_id)
        if session is None:
            return None
        return to_display(session)

    def list_sessions(self) -> list[DisplayState]:
        state = self.registry.snapshot()
        return [to_display(session) for session in state.sessions.values()]

    def download(self, session_id: UUID) -> Artifact:
        """Return the current image named for download.

        The name keeps the uploaded stem with an extension matching the
        current bytes, which differ from the upload after a crop.
        """
        session = self.registry.require(session_id)
        current = session.current.artifact
        stem = file_stem(session.original.name)
        return current.renamed(f"edited-{stem}.{extension_for(current.mime_type)}")

    def placement_prompt(
        self,
        jewelry_type: str,
        gender: Gender = Gender.FEMALE,
        collection: str | None = None,
    ) -> str:
        return build_placement_prompt(
            jewelry_type, gender=gender, collection=collection, brand=self.brand_name
        )

    def _navigate(
        self, session_id: UUID, move: Callable[[ImageSession], ImageSession]
    ) -> DisplayState | None:
        try:
            self.registry.update_session(session_id, move)
        except (NoOpError, SessionNotFoundError):
            logger.debug("Ignored history move", extra={"session_id": str(session_id)})
        return self.get_display_state(session_id)

    def _require_display(self, session_id: UUID) -> DisplayState:
        display = self.get_display_state(session_id)
        if display is None:
            raise SessionNotFoundError(session_id)
        return display


def to_display(session: ImageSession) -> DisplayState:
    current = session.current
    return DisplayState(
        session_id=session.id,
        current=current.artifact,
        original=session.original,
        can_undo=history.can_undo(session),
        can_redo=history.can_redo(session),
        title=current.title,
        description=current.description,
        is_busy=session.is_busy,
        is_enriching=session.is_enriching,
        version_index=session.current_index,
        version_count=len(session.history),
    )
