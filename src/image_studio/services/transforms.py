"""AI transform and enrichment service."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import BaseModel, Field

from image_studio.domain.artifacts import Artifact
from image_studio.domain.errors import TransformError
from image_studio.services.prompts import EditKind, describe_prompt, frame_edit_prompt

logger = logging.getLogger(__name__)

ENRICHMENT_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "description": {"type": "string"},
    },
    "required": ["title", "description"],
    "additionalProperties": False,
}


class Enrichment(BaseModel):
    """Generated product copy for one image version."""

    title: str = Field(min_length=1)
    description: str = Field(min_length=1)


class TransformClient(Protocol):
    """Interface for the external image editing capability."""

    async def transform(self, artifact: Artifact, prompt: str) -> Artifact:
        """Return a new image produced from ``artifact`` and ``prompt``."""

    async def describe(
        self, artifact: Artifact, prompt: str, schema: dict[str, object]
    ) -> dict[str, object]:
        """Return structured title/description data for an image."""


@dataclass
class ImageTransformService:
    """Frames prompts, applies timeouts and normalizes upstream failures."""

    client: TransformClient
    transform_timeout_seconds: float = 120.0
    enrichment_timeout_seconds: float = 60.0

    async def transform(
        self, artifact: Artifact, prompt: str, kind: EditKind = EditKind.ADJUSTMENT
    ) -> Artifact:
        """Run one primary edit, raising ``TransformError`` on any failure."""
        try:
            framed = frame_edit_prompt(kind, prompt)
        except ValueError as exc:
            raise TransformError(str(exc)) from exc
        try:
            return await asyncio.wait_for(
                self.client.transform(artifact, framed),
                timeout=self.transform_timeout_seconds,
            )
        except TimeoutError as exc:
            raise TransformError("The image service timed out.") from exc
        except TransformError:
            raise
        except Exception as exc:
            raise TransformError(str(exc) or exc.__class__.__name__) from exc

    async def describe(self, artifact: Artifact) -> Enrichment:
        """Generate a product title and description for an image."""
        raw = await asyncio.wait_for(
            self.client.describe(
                artifact, prompt=describe_prompt(), schema=ENRICHMENT_SCHEMA
            ),
            timeout=self.enrichment_timeout_seconds,
        )
        return Enrichment.model_validate(raw)
