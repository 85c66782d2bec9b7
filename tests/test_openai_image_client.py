"""Tests for the OpenAI image client."""

import asyncio
import base64
import json
from types import SimpleNamespace

import httpx
import pytest

from image_studio.adapters.openai_image_client import OpenAIImageClient
from tests.conftest import make_artifact

_PNG_BYTES = b"\x89PNG\r\n\x1a\nimage"


class _FakeImages:
    def __init__(self, image: SimpleNamespace | None) -> None:
        self.image = image
        self.last_payload: dict[str, object] | None = None

    async def edit(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        data = [self.image] if self.image is not None else []
        return SimpleNamespace(data=data)


class _FakeResponses:
    def __init__(self, output_text: str) -> None:
        self.output_text = output_text
        self.last_payload: dict[str, object] | None = None

    async def create(self, **kwargs):  # type: ignore[no-untyped-def]
        self.last_payload = kwargs
        return SimpleNamespace(output_text=self.output_text)


class _FakeOpenAI:
    def __init__(
        self, image: SimpleNamespace | None = None, output_text: str = ""
    ) -> None:
        self.images = _FakeImages(image)
        self.responses = _FakeResponses(output_text)
        self.closed = False

    async def close(self) -> None:
        self.closed = True


def _unused_transport() -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"Unexpected request to {request.url}")

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_transform_decodes_base64_image() -> None:
    image = SimpleNamespace(b64_json=base64.b64encode(_PNG_BYTES).decode(), url=None)
    openai = _FakeOpenAI(image=image)
    client = OpenAIImageClient(
        client=openai,
        http_client=_unused_transport(),
        image_model="gpt-image-1",
        text_model="gpt-5.2",
    )

    result = asyncio.run(client.transform(make_artifact("ring.png"), "add shine"))

    assert result.data == _PNG_BYTES
    assert result.mime_type == "image/png"
    payload = openai.images.last_payload
    assert payload["model"] == "gpt-image-1"
    assert payload["prompt"] == "add shine"
    assert payload["image"] == ("ring.png", b"ring.png", "image/png")


def test_transform_downloads_url_image() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/result.jpg"
        return httpx.Response(200, content=b"\xff\xd8\xffjpeg")

    image = SimpleNamespace(b64_json=None, url="https://images.test/result.jpg")
    client = OpenAIImageClient(
        client=_FakeOpenAI(image=image),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        image_model="gpt-image-1",
        text_model="gpt-5.2",
    )

    result = asyncio.run(client.transform(make_artifact("ring.png"), "add shine"))

    assert result.data == b"\xff\xd8\xffjpeg"
    assert result.mime_type == "image/jpeg"


def test_transform_without_image_raises() -> None:
    client = OpenAIImageClient(
        client=_FakeOpenAI(image=None),
        http_client=_unused_transport(),
        image_model="gpt-image-1",
        text_model="gpt-5.2",
    )

    with pytest.raises(RuntimeError, match="did not return an image"):
        asyncio.run(client.transform(make_artifact("ring.png"), "add shine"))


def test_describe_parses_structured_output() -> None:
    openai = _FakeOpenAI(
        output_text=json.dumps({"title": "Gold Ring", "description": "Shiny."})
    )
    client = OpenAIImageClient(
        client=openai,
        http_client=_unused_transport(),
        image_model="gpt-image-1",
        text_model="gpt-5.2",
        reasoning_effort="low",
    )

    result = asyncio.run(
        client.describe(make_artifact("ring.png"), "Describe", {"type": "object"})
    )

    assert result == {"title": "Gold Ring", "description": "Shiny."}
    payload = openai.responses.last_payload
    assert payload["model"] == "gpt-5.2"
    assert payload["reasoning"] == {"effort": "low"}
    assert payload["text"]["format"]["name"] == "product_description"
    content = payload["input"][0]["content"]
    assert content[1]["image_url"].startswith("data:image/png;base64,")


def test_describe_rejects_empty_output() -> None:
    client = OpenAIImageClient(
        client=_FakeOpenAI(output_text=""),
        http_client=_unused_transport(),
        image_model="gpt-image-1",
        text_model="gpt-5.2",
    )

    with pytest.raises(RuntimeError, match="empty response"):
        asyncio.run(client.describe(make_artifact("ring.png"), "Describe", {}))


def test_close_releases_both_clients() -> None:
    openai = _FakeOpenAI()
    http_client = _unused_transport()
    client = OpenAIImageClient(
        client=openai,
        http_client=http_client,
        image_model="gpt-image-1",
        text_model="gpt-5.2",
    )

    asyncio.run(client.close())

    assert openai.closed
    assert http_client.is_closed
