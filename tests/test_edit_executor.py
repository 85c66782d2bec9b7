"""Tests for single-image edits and crops."""

import asyncio
import io
from uuid import uuid4

import pytest
from PIL import Image

from image_studio.domain.errors import (
    AlreadyBusyError,
    InvalidCropError,
    SessionNotFoundError,
    TransformError,
)
from image_studio.domain.sessions import CropRegion
from image_studio.services.prompts import EditKind
from tests.conftest import FakeTransformClient, make_artifact, make_png, make_studio


def test_successful_edit_appends_version_and_enriches() -> None:
    client = FakeTransformClient()
    studio = make_studio(client)
    state = studio.create_sessions([make_artifact("ring.png")])
    session_id = state.selected_id

    async def scenario() -> None:
        display = await studio.submit_edit(session_id, "warmer light")
        assert display.version_count == 2
        assert display.version_index == 1
        assert not display.is_busy
        await studio.enrichment.drain()

    asyncio.run(scenario())

    session = studio.registry.snapshot().sessions[session_id]
    assert session.current.artifact.data == b"ring.png+edit"
    assert session.current.title == f"Title for {session.current.artifact.name}"
    assert session.history[0].title is None
    assert not session.is_enriching
    assert client.transform_calls[0][0] == "ring.png"
    assert "warmer light" in client.transform_calls[0][1]


def test_failed_edit_leaves_history_untouched() -> None:
    client = FakeTransformClient(fail_for={"ring.png"})
    studio = make_studio(client)
    session_id = studio.create_sessions([make_artifact("ring.png")]).selected_id

    with pytest.raises(TransformError) as excinfo:
        asyncio.run(studio.submit_edit(session_id, "sepia", EditKind.FILTER))

    assert "model refused ring.png" in excinfo.value.message
    session = studio.registry.snapshot().sessions[session_id]
    assert len(session.history) == 1
    assert not session.is_busy
    assert client.describe_calls == []


def test_second_edit_while_pending_is_rejected() -> None:
    client = FakeTransformClient()
    studio = make_studio(client)
    session_id = studio.create_sessions([make_artifact("ring.png")]).selected_id

    async def scenario() -> None:
        gate = asyncio.Event()
        client.gates["*"] = gate
        first = asyncio.create_task(studio.submit_edit(session_id, "first"))
        await asyncio.sleep(0.01)
        assert studio.get_display_state(session_id).is_busy

        with pytest.raises(AlreadyBusyError):
            await studio.submit_edit(session_id, "second")
        assert len(client.transform_calls) == 1

        gate.set()
        display = await first
        assert display.version_count == 2
        await studio.enrichment.drain()

    asyncio.run(scenario())


def test_timeout_is_reported_as_transform_failure() -> None:
    client = FakeTransformClient()
    studio = make_studio(client, transform_timeout_seconds=0.01)
    session_id = studio.create_sessions([make_artifact("ring.png")]).selected_id

    async def scenario() -> None:
        client.gates["*"] = asyncio.Event()
        with pytest.raises(TransformError, match="timed out"):
            await studio.submit_edit(session_id, "slow")

    asyncio.run(scenario())

    display = studio.get_display_state(session_id)
    assert not display.is_busy
    assert display.version_count == 1


def test_cancelled_edit_releases_session() -> None:
    client = FakeTransformClient()
    studio = make_studio(client)
    session_id = studio.create_sessions([make_artifact("ring.png")]).selected_id

    async def scenario() -> None:
        client.gates["*"] = asyncio.Event()
        task = asyncio.create_task(studio.submit_edit(session_id, "never"))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(scenario())

    assert not studio.get_display_state(session_id).is_busy


def test_edit_unknown_session_raises() -> None:
    studio = make_studio()

    with pytest.raises(SessionNotFoundError):
        asyncio.run(studio.submit_edit(uuid4(), "anything"))


def test_edit_after_undo_replaces_redo_branch() -> None:
    studio = make_studio()
    session_id = studio.create_sessions([make_artifact("ring.png")]).selected_id

    async def scenario() -> None:
        await studio.submit_edit(session_id, "first")
        await studio.submit_edit(session_id, "second")
        studio.undo(session_id)
        await studio.submit_edit(session_id, "third")
        await studio.enrichment.drain()

    asyncio.run(scenario())

    session = studio.registry.snapshot().sessions[session_id]
    assert len(session.history) == 3
    assert session.current_index == 2
    assert session.current.artifact.data == b"ring.png+edit+edit"


def test_crop_commits_region_as_new_version() -> None:
    studio = make_studio()
    session_id = studio.create_sessions([make_png("ring.png")]).selected_id

    async def scenario() -> None:
        studio.submit_crop(session_id, CropRegion(x=5, y=5, width=10, height=8))
        await studio.enrichment.drain()

    asyncio.run(scenario())

    session = studio.registry.snapshot().sessions[session_id]
    assert len(session.history) == 2
    with Image.open(io.BytesIO(session.current.artifact.data)) as img:
        assert img.size == (10, 8)
    assert session.current.title is not None


def test_crop_outside_image_is_rejected() -> None:
    studio = make_studio()
    session_id = studio.create_sessions([make_png("ring.png")]).selected_id

    with pytest.raises(InvalidCropError):
        studio.submit_crop(session_id, CropRegion(x=30, y=0, width=20, height=10))

    assert studio.get_display_state(session_id).version_count == 1


def test_crop_while_busy_is_rejected() -> None:
    client = FakeTransformClient()
    studio = make_studio(client)
    session_id = studio.create_sessions([make_png("ring.png")]).selected_id

    async def scenario() -> None:
        gate = asyncio.Event()
        client.gates["*"] = gate
        pending = asyncio.create_task(studio.submit_edit(session_id, "edit"))
        await asyncio.sleep(0.01)
        with pytest.raises(AlreadyBusyError):
            studio.submit_crop(session_id, CropRegion(x=0, y=0, width=5, height=5))
        gate.set()
        await pending
        await studio.enrichment.drain()

    asyncio.run(scenario())


def test_edit_result_reports_pending_description() -> None:
    client = FakeTransformClient()
    studio = make_studio(client)
    session_id = studio.create_sessions([make_artifact("ring.png")]).selected_id

    async def scenario() -> None:
        client.describe_gate = asyncio.Event()
        display = await studio.submit_edit(session_id, "warmer")
        assert display.is_enriching
        assert display.title is None
        assert studio.get_display_state(session_id).is_enriching

        client.describe_gate.set()
        await studio.enrichment.drain()

    asyncio.run(scenario())

    display = studio.get_display_state(session_id)
    assert not display.is_enriching
    assert display.title is not None


def test_crop_result_reports_pending_description() -> None:
    client = FakeTransformClient()
    studio = make_studio(client)
    session_id = studio.create_sessions([make_png("ring.png")]).selected_id

    async def scenario() -> None:
        client.describe_gate = asyncio.Event()
        display = studio.submit_crop(session_id, CropRegion(0, 0, 5, 5))
        assert display.is_enriching
        client.describe_gate.set()
        await studio.enrichment.drain()

    asyncio.run(scenario())

    assert not studio.get_display_state(session_id).is_enriching


def test_crop_without_event_loop_commits_without_description() -> None:
    client = FakeTransformClient()
    studio = make_studio(client)
    session_id = studio.create_sessions([make_png("ring.png")]).selected_id

    display = studio.submit_crop(session_id, CropRegion(0, 0, 5, 5))

    assert display.version_count == 2
    assert not display.is_enriching
    assert display.title is None
    assert studio.enrichment.pending == 0
    assert client.describe_calls == []
