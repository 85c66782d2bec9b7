"""Apply one edit to every uploaded image."""

import asyncio
import logging
from dataclasses import dataclass, replace
from uuid import UUID

from image_studio.domain.artifacts import Artifact, extension_for
from image_studio.domain.errors import NoImagesError, TransformError
from image_studio.domain.sessions import BatchReport, RegistryState
from image_studio.services import history
from image_studio.services.enrichment import EnrichmentTrigger
from image_studio.services.prompts import EditKind
from image_studio.services.registry import SessionRegistry, StateUpdate
from image_studio.services.transforms import ImageTransformService

logger = logging.getLogger(__name__)

BUSY_REASON = "An edit is already in progress for this image."


@dataclass
class BatchCoordinator:
    """Fans an edit out across all sessions with per-image isolation.

    Each image's transform runs concurrently and settles on its own; one
    failure never cancels the others. Outcomes are merged in a single
    commit once every call has settled.
    """

    registry: SessionRegistry
    transforms: ImageTransformService
    enrichment: EnrichmentTrigger

    async def execute_all(
        self, prompt: str, kind: EditKind = EditKind.ADJUSTMENT
    ) -> BatchReport:
        """Run ``prompt`` against every session and report the outcome."""
        sources: dict[UUID, Artifact] = {}
        skipped: list[UUID] = []

        def _begin(state: RegistryState) -> RegistryState:
            if not state.sessions:
                raise NoImagesError("No images loaded to apply adjustments to.")
            started = []
            for session in state.sessions.values():
                if session.is_busy:
                    skipped.append(session.id)
                    continue
                sources[session.id] = session.current.artifact
                started.append(replace(session, is_busy=True))
            return state.with_sessions(started)

        self.registry.commit(_begin)
        logger.info(
            "Starting batch edit for %d image(s), %d skipped",
            len(sources),
            len(skipped),
        )

        session_ids = list(sources)
        try:
            outcomes = await asyncio.gather(
                *(
                    self.transforms.transform(sources[session_id], prompt, kind)
                    for session_id in session_ids
                ),
                return_exceptions=True,
            )
        except asyncio.CancelledError:
            self.registry.commit(_release_all(session_ids))
            raise

        results: dict[UUID, Artifact] = {}
        errors: list[tuple[UUID, str]] = [(sid, BUSY_REASON) for sid in skipped]
        for session_id, outcome in zip(session_ids, outcomes, strict=True):
            if isinstance(outcome, Artifact):
                source = sources[session_id]
                results[session_id] = outcome.renamed(
                    f"{kind.value}-{source.digest[:12]}."
                    f"{extension_for(outcome.mime_type)}"
                )
                continue
            reason = (
                outcome.message
                if isinstance(outcome, TransformError)
                else str(outcome) or outcome.__class__.__name__
            )
            logger.warning(
                "Failed to apply batch edit: %s",
                reason,
                extra={"session_id": str(session_id)},
            )
            errors.append((session_id, reason))

        state = self.registry.commit(_merge(session_ids, results))
        succeeded = [sid for sid in results if sid in state.sessions]
        errors = [(sid, reason) for sid, reason in errors if sid in state.sessions]
        if len(succeeded) < len(results):
            logger.info(
                "Dropped %d batch result(s) for closed sessions",
                len(results) - len(succeeded),
            )

        for session_id in succeeded:
            session = state.sessions[session_id]
            self.enrichment.spawn(
                session_id, session.current.id, session.current.artifact
            )

        logger.info(
            "Batch edit finished: %d succeeded, %d failed", len(succeeded), len(errors)
        )
        return BatchReport(succeeded=len(succeeded), failed=len(errors), errors=errors)


def _merge(session_ids: list[UUID], results: dict[UUID, Artifact]) -> StateUpdate:
    def _apply(state: RegistryState) -> RegistryState:
        updated = []
        for session_id in session_ids:
            session = state.get(session_id)
            if session is None:
                continue
            artifact = results.get(session_id)
            if artifact is not None:
                session = history.append_version(session, artifact)
            updated.append(replace(session, is_busy=False))
        return state.with_sessions(updated)

    return _apply


def _release_all(session_ids: list[UUID]) -> StateUpdate:
    return _merge(session_ids, {})
