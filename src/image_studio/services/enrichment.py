"""Best-effort product copy generation after a committed edit."""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from functools import partial
from uuid import UUID

from image_studio.domain.artifacts import Artifact
from image_studio.domain.sessions import ImageSession, RegistryState
from image_studio.services.registry import SessionRegistry, StateUpdate
from image_studio.services.transforms import Enrichment, ImageTransformService

logger = logging.getLogger(__name__)


@dataclass
class EnrichmentTrigger:
    """Spawns background enrichment tasks that never block primary edits."""

    registry: SessionRegistry
    transforms: ImageTransformService
    _tasks: set[asyncio.Task[None]] = field(default_factory=set, init=False)

    def spawn(self, session_id: UUID, version_id: UUID, artifact: Artifact) -> None:
        """Start enrichment for a version without waiting for it.

        The session is marked as enriching before this returns. Without a
        running event loop nothing is scheduled and the version stays
        undescribed.
        """
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            logger.info(
                "No event loop running, skipping product description",
                extra={"session_id": str(session_id)},
            )
            return
        self.registry.commit(_adjust_pending(session_id, 1))
        task = asyncio.create_task(self._complete(session_id, version_id, artifact))
        self._tasks.add(task)
        task.add_done_callback(partial(self._finish, session_id))

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait for every outstanding enrichment task to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def enrich(
        self, session_id: UUID, version_id: UUID, artifact: Artifact
    ) -> None:
        """Describe ``artifact`` and attach the copy if it is still current."""
        self.registry.commit(_adjust_pending(session_id, 1))
        try:
            await self._complete(session_id, version_id, artifact)
        finally:
            self.registry.commit(_adjust_pending(session_id, -1))

    def _finish(self, session_id: UUID, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        self.registry.commit(_adjust_pending(session_id, -1))

    async def _complete(
        self, session_id: UUID, version_id: UUID, artifact: Artifact
    ) -> None:
        try:
            enrichment = await self.transforms.describe(artifact)
        except Exception:
            logger.warning(
                "Failed to generate product description",
                exc_info=True,
                extra={"session_id": str(session_id)},
            )
        else:
            self.registry.commit(_attach(session_id, version_id, enrichment))


def _adjust_pending(session_id: UUID, delta: int) -> StateUpdate:
    def _apply(state: RegistryState) -> RegistryState:
        session = state.get(session_id)
        if session is None:
            return state
        pending = max(session.pending_enrichments + delta, 0)
        return state.with_session(replace(session, pending_enrichments=pending))

    return _apply


def _attach(
    session_id: UUID, version_id: UUID, enrichment: Enrichment
) -> StateUpdate:
    def _apply(state: RegistryState) -> RegistryState:
        session = state.get(session_id)
        if session is None or not _is_current(session, version_id):
            logger.debug(
                "Discarding stale product description",
                extra={"session_id": str(session_id)},
            )
            return state
        if session.current.is_enriched:
            return state
        history = list(session.history)
        history[session.current_index] = session.current.enriched(
            enrichment.title, enrichment.description
        )
        return state.with_session(replace(session, history=tuple(history)))

    return _apply


def _is_current(session: ImageSession, version_id: UUID) -> bool:
    return session.current.id == version_id
