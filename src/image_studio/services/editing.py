"""Single-image edits: AI transforms and local crops."""

import asyncio
import logging
from dataclasses import dataclass, replace
from uuid import UUID

from image_studio.domain.artifacts import Artifact, extension_for
from image_studio.domain.errors import (
    AlreadyBusyError,
    SessionNotFoundError,
    TransformError,
)
from image_studio.domain.sessions import CropRegion, ImageSession, RegistryState
from image_studio.services import history
from image_studio.services.cropping import crop_artifact
from image_studio.services.enrichment import EnrichmentTrigger
from image_studio.services.prompts import EditKind
from image_studio.services.registry import SessionRegistry, StateUpdate
from image_studio.services.transforms import ImageTransformService

logger = logging.getLogger(__name__)


@dataclass
class EditExecutor:
    """Runs one primary edit per session and commits the outcome atomically."""

    registry: SessionRegistry
    transforms: ImageTransformService
    enrichment: EnrichmentTrigger

    async def execute(
        self, session_id: UUID, prompt: str, kind: EditKind = EditKind.ADJUSTMENT
    ) -> Artifact:
        """Transform the session's current image and append the result.

        Raises ``AlreadyBusyError`` without calling the transform when an
        edit is already in flight, and ``TransformError`` when it fails.
        History only changes on success.
        """
        session = self.registry.update_session(session_id, _mark_busy)
        source = session.current.artifact
        try:
            result = await self.transforms.transform(source, prompt, kind)
        except TransformError as exc:
            self.registry.commit(_release(session_id))
            logger.warning(
                "Edit failed: %s", exc.message, extra={"session_id": str(session_id)}
            )
            raise
        except asyncio.CancelledError:
            self.registry.commit(_release(session_id))
            raise
        artifact = result.renamed(
            f"{kind.value}-{source.digest[:12]}.{extension_for(result.mime_type)}"
        )
        state = self.registry.commit(_append(session_id, artifact))
        self._enrich_current(state, session_id)
        return artifact

    def crop(self, session_id: UUID, region: CropRegion) -> Artifact:
        """Crop the current image locally and append the result."""
        session = self.registry.require(session_id)
        if session.is_busy:
            raise AlreadyBusyError(session_id)
        artifact = crop_artifact(session.current.artifact, region)
        state = self.registry.commit(_append_if_idle(session_id, artifact))
        self._enrich_current(state, session_id)
        return artifact

    def _enrich_current(self, state: RegistryState, session_id: UUID) -> None:
        session = state.get(session_id)
        if session is None:
            logger.info(
                "Session closed before its edit committed",
                extra={"session_id": str(session_id)},
            )
            return
        self.enrichment.spawn(session_id, session.current.id, session.current.artifact)


def _mark_busy(session: ImageSession) -> ImageSession:
    if session.is_busy:
        raise AlreadyBusyError(session.id)
    return replace(session, is_busy=True)


def _release(session_id: UUID) -> StateUpdate:
    def _apply(state: RegistryState) -> RegistryState:
        session = state.get(session_id)
        if session is None:
            return state
        return state.with_session(replace(session, is_busy=False))

    return _apply


def _append(session_id: UUID, artifact: Artifact) -> StateUpdate:
    def _apply(state: RegistryState) -> RegistryState:
        session = state.get(session_id)
        if session is None:
            return state
        committed = history.append_version(session, artifact)
        return state.with_session(replace(committed, is_busy=False))

    return _apply


def _append_if_idle(session_id: UUID, artifact: Artifact) -> StateUpdate:
    def _apply(state: RegistryState) -> RegistryState:
        session = state.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        if session.is_busy:
            raise AlreadyBusyError(session_id)
        return state.with_session(history.append_version(session, artifact))

    return _apply
