"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, HTTPException, Request, Response, status

from image_studio.api.models import (
    BatchEditRequest,
    BatchEditResponse,
    CropRequest,
    EditRequest,
    PlacementPromptRequest,
    PlacementPromptResponse,
    SessionListResponse,
    SessionView,
    UploadRequest,
)
from image_studio.app_logging import configure_logging
from image_studio.containers import AppContainer
from image_studio.domain.artifacts import artifact_from_data_url
from image_studio.domain.errors import (
    AlreadyBusyError,
    InvalidCropError,
    NoImagesError,
    SessionNotFoundError,
    TransformError,
)
from image_studio.domain.sessions import CropRegion, DisplayState
from image_studio.services.studio import StudioService, to_display

_UNPROCESSABLE = 422


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        try:
            await app.state.container.close_resources()
        except Exception:
            logger.exception("Failed to close resources")

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    def _studio(request: Request) -> StudioService:
        state_container: AppContainer = request.app.state.container
        return state_container.studio_service

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/sessions")
    async def upload(body: UploadRequest, request: Request) -> SessionListResponse:
        """Replace all sessions with a new upload batch."""
        try:
            artifacts = [
                artifact_from_data_url(image.data_url, image.name)
                for image in body.images
            ]
        except ValueError as exc:
            raise HTTPException(_UNPROCESSABLE, detail=str(exc)) from exc
        studio = _studio(request)
        try:
            studio.create_sessions(artifacts)
        except NoImagesError as exc:
            raise HTTPException(_UNPROCESSABLE, detail=str(exc)) from exc
        return _session_list(studio)

    @app.get("/sessions")
    async def list_sessions(request: Request) -> SessionListResponse:
        return _session_list(_studio(request))

    @app.delete("/sessions")
    async def start_over(request: Request) -> SessionListResponse:
        studio = _studio(request)
        studio.start_over()
        return _session_list(studio)

    @app.get("/sessions/{session_id}")
    async def session_detail(session_id: UUID, request: Request) -> SessionView:
        return _view(_studio(request).get_display_state(session_id), session_id)

    @app.post("/sessions/{session_id}/select")
    async def select_session(session_id: UUID, request: Request) -> SessionListResponse:
        studio = _studio(request)
        studio.select_session(session_id)
        return _session_list(studio)

    @app.post("/sessions/{session_id}/edits")
    async def submit_edit(
        session_id: UUID, body: EditRequest, request: Request
    ) -> SessionView:
        """Apply a filter, adjustment or generation to one image."""
        try:
            display = await _studio(request).submit_edit(
                session_id, body.prompt, body.kind
            )
        except SessionNotFoundError as exc:
            raise HTTPException(status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        except AlreadyBusyError as exc:
            raise HTTPException(status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        except TransformError as exc:
            raise HTTPException(
                status.HTTP_502_BAD_GATEWAY,
                detail=f"Failed to apply the {body.kind.value}. {exc.message}",
            ) from exc
        return SessionView.from_display(display)

    @app.post("/sessions/{session_id}/crop")
    async def submit_crop(
        session_id: UUID, body: CropRequest, request: Request
    ) -> SessionView:
        region = CropRegion(x=body.x, y=body.y, width=body.width, height=body.height)
        try:
            display = _studio(request).submit_crop(session_id, region)
        except SessionNotFoundError as exc:
            raise HTTPException(status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        except AlreadyBusyError as exc:
            raise HTTPException(status.HTTP_409_CONFLICT, detail=str(exc)) from exc
        except InvalidCropError as exc:
            raise HTTPException(_UNPROCESSABLE, detail=exc.message) from exc
        return SessionView.from_display(display)

    @app.post("/sessions/{session_id}/undo")
    async def undo(session_id: UUID, request: Request) -> SessionView:
        return _view(_studio(request).undo(session_id), session_id)

    @app.post("/sessions/{session_id}/redo")
    async def redo(session_id: UUID, request: Request) -> SessionView:
        return _view(_studio(request).redo(session_id), session_id)

    @app.post("/sessions/{session_id}/reset")
    async def reset(session_id: UUID, request: Request) -> SessionView:
        return _view(_studio(request).reset(session_id), session_id)

    @app.get("/sessions/{session_id}/download")
    async def download(session_id: UUID, request: Request) -> Response:
        try:
            artifact = _studio(request).download(session_id)
        except SessionNotFoundError as exc:
            raise HTTPException(status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        return Response(
            content=artifact.data,
            media_type=artifact.mime_type,
            headers={
                "Content-Disposition": f'attachment; filename="{artifact.name}"'
            },
        )

    @app.post("/batch-edits")
    async def submit_batch_edit(
        body: BatchEditRequest, request: Request
    ) -> BatchEditResponse:
        """Apply one edit to every uploaded image."""
        try:
            report = await _studio(request).submit_batch_edit(body.prompt, body.kind)
        except NoImagesError as exc:
            raise HTTPException(_UNPROCESSABLE, detail=str(exc)) from exc
        failure = report.as_error()
        if failure is not None:
            logger.warning(
                "Batch edit partially failed: %s",
                failure,
                extra={"errors": report.errors},
            )
        return BatchEditResponse.from_report(report)

    @app.post("/prompts/placement")
    async def placement_prompt(
        body: PlacementPromptRequest, request: Request
    ) -> PlacementPromptResponse:
        try:
            prompt = _studio(request).placement_prompt(
                body.jewelry_type, gender=body.gender, collection=body.collection
            )
        except ValueError as exc:
            raise HTTPException(_UNPROCESSABLE, detail=str(exc)) from exc
        return PlacementPromptResponse(prompt=prompt)

    return app


def _view(display: DisplayState | None, session_id: UUID) -> SessionView:
    if display is None:
        raise HTTPException(
            status.HTTP_404_NOT_FOUND, detail=f"Session {session_id} not found"
        )
    return SessionView.from_display(display)


def _session_list(studio: StudioService) -> SessionListResponse:
    state = studio.snapshot()
    return SessionListResponse(
        sessions=[
            SessionView.from_display(to_display(session))
            for session in state.sessions.values()
        ],
        selected_id=state.selected_id,
        is_loading=state.is_loading,
    )
