"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from image_studio.adapters.openai_image_client import OpenAIImageClient
from image_studio.config import Settings
from image_studio.services.studio import StudioService
from image_studio.services.transforms import ImageTransformService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    transform_service: ImageTransformService
    studio_service: StudioService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    openai_client = OpenAIImageClient.create(
        api_key=resolved_settings.openai_api_key,
        image_model=resolved_settings.openai_image_model,
        text_model=resolved_settings.openai_text_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        store=resolved_settings.openai_store,
    )
    transform_service = ImageTransformService(
        client=openai_client,
        transform_timeout_seconds=resolved_settings.transform_timeout_seconds,
        enrichment_timeout_seconds=resolved_settings.enrichment_timeout_seconds,
    )
    studio_service = StudioService.create(
        transform_service, brand_name=resolved_settings.brand_name
    )

    async def close_resources() -> None:
        await studio_service.enrichment.drain()
        await openai_client.close()

    return AppContainer(
        settings=resolved_settings,
        transform_service=transform_service,
        studio_service=studio_service,
        close_resources=close_resources,
    )
