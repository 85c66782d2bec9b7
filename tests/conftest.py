"""Shared test fixtures."""

import asyncio
import io
from dataclasses import dataclass, field

import pytest
from PIL import Image

from image_studio.config import Settings
from image_studio.containers import AppContainer
from image_studio.domain.artifacts import Artifact
from image_studio.services.studio import StudioService
from image_studio.services.transforms import ImageTransformService, TransformClient


@dataclass
class FakeTransformClient(TransformClient):
    """Fake transform client with per-image failures and gates."""

    fail_for: set[str] = field(default_factory=set)
    gates: dict[str, asyncio.Event] = field(default_factory=dict)
    describe_gate: asyncio.Event | None = None
    describe_error: Exception | None = None
    transform_calls: list[tuple[str, str]] = field(default_factory=list)
    describe_calls: list[str] = field(default_factory=list)

    async def transform(self, artifact: Artifact, prompt: str) -> Artifact:
        self.transform_calls.append((artifact.name, prompt))
        gate = self.gates.get(artifact.name) or self.gates.get("*")
        if gate is not None:
            await gate.wait()
        if artifact.name in self.fail_for:
            raise RuntimeError(f"model refused {artifact.name}")
        return Artifact(
            data=artifact.data + b"+edit",
            name=f"edited-{artifact.name}",
            mime_type=artifact.mime_type,
        )

    async def describe(
        self, artifact: Artifact, prompt: str, schema: dict[str, object]
    ) -> dict[str, object]:
        self.describe_calls.append(artifact.name)
        if self.describe_gate is not None:
            await self.describe_gate.wait()
        if self.describe_error is not None:
            raise self.describe_error
        return {
            "title": f"Title for {artifact.name}",
            "description": f"Description for {artifact.name}",
        }


def make_artifact(name: str, data: bytes | None = None) -> Artifact:
    return Artifact(data=data or name.encode(), name=name, mime_type="image/png")


def make_png(name: str, width: int = 40, height: int = 30) -> Artifact:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=(200, 180, 40)).save(buffer, format="PNG")
    return Artifact(data=buffer.getvalue(), name=name, mime_type="image/png")


def make_studio(
    client: FakeTransformClient | None = None,
    transform_timeout_seconds: float = 5.0,
) -> StudioService:
    transforms = ImageTransformService(
        client=client or FakeTransformClient(),
        transform_timeout_seconds=transform_timeout_seconds,
        enrichment_timeout_seconds=5.0,
    )
    return StudioService.create(transforms)


@pytest.fixture
def settings() -> Settings:
    return Settings(openai_api_key="openai-key")


@pytest.fixture
def transform_client() -> FakeTransformClient:
    return FakeTransformClient()


@pytest.fixture
def container(
    settings: Settings, transform_client: FakeTransformClient
) -> AppContainer:
    transform_service = ImageTransformService(client=transform_client)
    studio_service = StudioService.create(
        transform_service, brand_name=settings.brand_name
    )

    async def close_resources() -> None:
        await studio_service.enrichment.drain()

    return AppContainer(
        settings=settings,
        transform_service=transform_service,
        studio_service=studio_service,
        close_resources=close_resources,
    )
