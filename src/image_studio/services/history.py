"""Pure history navigation for a single image session.

Every function takes a session snapshot and returns a new one; nothing here
mutates shared state. The registry applies the results atomically.
"""

from dataclasses import replace

from image_studio.domain.artifacts import Artifact
from image_studio.domain.errors import NoOpError
from image_studio.domain.sessions import ImageSession, Version


def can_undo(session: ImageSession) -> bool:
    return session.current_index > 0


def can_redo(session: ImageSession) -> bool:
    return session.current_index < len(session.history) - 1


def undo(session: ImageSession) -> ImageSession:
    """Step back one version."""
    if not can_undo(session):
        raise NoOpError("Nothing to undo")
    return replace(session, current_index=session.current_index - 1)


def redo(session: ImageSession) -> ImageSession:
    """Step forward one version."""
    if not can_redo(session):
        raise NoOpError("Nothing to redo")
    return replace(session, current_index=session.current_index + 1)


def reset(session: ImageSession) -> ImageSession:
    """Return to the pristine upload."""
    if session.current_index == 0:
        return session
    return replace(session, current_index=0)


def append_version(session: ImageSession, artifact: Artifact) -> ImageSession:
    """Commit a new version after the current one, dropping the redo branch."""
    history = session.history[: session.current_index + 1] + (Version(artifact),)
    return replace(session, history=history, current_index=len(history) - 1)
