"""OpenAI-backed image editing and product copy client."""

import base64
import json
from dataclasses import dataclass

import httpx
from openai import AsyncOpenAI

from image_studio.domain.artifacts import Artifact
from image_studio.services.transforms import TransformClient


@dataclass
class OpenAIImageClient(TransformClient):
    """Transform client backed by the OpenAI Images and Responses APIs."""

    client: AsyncOpenAI
    http_client: httpx.AsyncClient
    image_model: str
    text_model: str
    reasoning_effort: str | None = None
    store: bool = False

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        api_key: str,
        image_model: str,
        text_model: str,
        reasoning_effort: str | None = None,
        store: bool = False,
    ) -> "OpenAIImageClient":
        """Create a client with managed OpenAI and httpx sessions."""
        return cls(
            client=AsyncOpenAI(api_key=api_key),
            http_client=httpx.AsyncClient(),
            image_model=image_model,
            text_model=text_model,
            reasoning_effort=reasoning_effort,
            store=store,
        )

    async def transform(self, artifact: Artifact, prompt: str) -> Artifact:
        """Edit an image with the Images API and return the first result."""
        response = await self.client.images.edit(
            model=self.image_model,
            image=(artifact.name, artifact.data, artifact.mime_type),
            prompt=prompt,
        )
        if not response.data:
            raise RuntimeError("The model did not return an image.")
        image = response.data[0]
        if image.b64_json:
            data = base64.b64decode(image.b64_json)
        elif image.url:
            download = await self.http_client.get(image.url, timeout=60)
            download.raise_for_status()
            data = download.content
        else:
            raise RuntimeError("The model returned an empty image.")
        return Artifact.from_bytes(data, name=artifact.name)

    async def describe(
        self, artifact: Artifact, prompt: str, schema: dict[str, object]
    ) -> dict[str, object]:
        """Call the Responses API with structured outputs."""
        request_payload: dict[str, object] = {
            "model": self.text_model,
            "input": [
                {
                    "role": "user",
                    "content": [
                        {"type": "input_text", "text": prompt},
                        {"type": "input_image", "image_url": artifact.to_data_url()},
                    ],
                }
            ],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "product_description",
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": self.store,
        }
        if self.reasoning_effort:
            request_payload["reasoning"] = {"effort": self.reasoning_effort}

        response = await self.client.responses.create(**request_payload)
        output_text = response.output_text
        if not output_text:
            raise RuntimeError("OpenAI returned an empty response")
        return json.loads(output_text)

    async def close(self) -> None:
        """Close the underlying HTTP sessions."""
        await self.http_client.aclose()
        await self.client.close()
