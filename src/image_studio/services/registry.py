"""Single owner of all image sessions."""

import logging
import threading
from collections.abc import Callable
from dataclasses import replace
from uuid import UUID

from image_studio.domain.artifacts import Artifact
from image_studio.domain.errors import NoImagesError, SessionNotFoundError
from image_studio.domain.sessions import ImageSession, RegistryState

logger = logging.getLogger(__name__)

StateUpdate = Callable[[RegistryState], RegistryState]


class SessionRegistry:
    """Holds the current registry snapshot and serializes every commit.

    Readers get an immutable ``RegistryState``. Writers pass a pure function
    from the old snapshot to the new one; it runs under a lock and the result
    replaces the snapshot in one step, so two completions can never
    interleave their updates.
    """

    def __init__(self) -> None:
        self._state = RegistryState()
        self._lock = threading.Lock()

    def snapshot(self) -> RegistryState:
        """Return the current immutable state."""
        return self._state

    def commit(self, update: StateUpdate) -> RegistryState:
        """Apply ``update`` atomically and return the new state.

        Exceptions raised by ``update`` abort the commit and propagate.
        """
        with self._lock:
            new_state = update(self._state)
            if new_state is self._state:
                return new_state
            self._state = replace(new_state, revision=self._state.revision + 1)
            return self._state

    def update_session(
        self, session_id: UUID, change: Callable[[ImageSession], ImageSession]
    ) -> ImageSession:
        """Apply ``change`` to one session atomically and return the result."""

        def _apply(state: RegistryState) -> RegistryState:
            session = state.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            updated = change(session)
            if updated is session:
                return state
            return state.with_session(updated)

        state = self.commit(_apply)
        return state.sessions[session_id]

    def require(self, session_id: UUID) -> ImageSession:
        """Return a session snapshot or raise ``SessionNotFoundError``."""
        session = self._state.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def create_sessions(self, artifacts: list[Artifact]) -> RegistryState:
        """Replace the whole registry with one session per artifact."""
        if not artifacts:
            raise NoImagesError("No images were uploaded")
        sessions = [ImageSession.start(artifact) for artifact in artifacts]

        def _replace(state: RegistryState) -> RegistryState:
            return replace(
                state,
                sessions={session.id: session for session in sessions},
                selected_id=sessions[0].id,
            )

        state = self.commit(_replace)
        logger.info("Created %d image session(s)", len(sessions))
        return state

    def select(self, session_id: UUID) -> RegistryState:
        """Select a session; unknown ids leave the state untouched."""

        def _select(state: RegistryState) -> RegistryState:
            if session_id not in state.sessions or state.selected_id == session_id:
                return state
            return replace(state, selected_id=session_id)

        return self.commit(_select)

    def clear(self) -> RegistryState:
        """Drop every session."""
        return self.commit(
            lambda state: replace(state, sessions={}, selected_id=None)
        )
