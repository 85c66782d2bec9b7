"""ASGI entrypoint for the image studio API."""

from image_studio.api.app import create_app
from image_studio.containers import build_container

app = create_app(build_container())
