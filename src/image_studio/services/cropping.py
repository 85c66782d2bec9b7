"""Local, deterministic cropping with Pillow."""

import io

from PIL import Image, UnidentifiedImageError

from image_studio.domain.artifacts import Artifact, file_stem
from image_studio.domain.errors import InvalidCropError
from image_studio.domain.sessions import CropRegion


def crop_artifact(artifact: Artifact, region: CropRegion) -> Artifact:
    """Extract ``region`` from the image as a new PNG artifact."""
    if region.width <= 0 or region.height <= 0:
        raise InvalidCropError("Please select an area to crop.")
    if region.x < 0 or region.y < 0:
        raise InvalidCropError("Crop region must start inside the image.")
    try:
        with Image.open(io.BytesIO(artifact.data)) as img:
            right = region.x + region.width
            bottom = region.y + region.height
            if right > img.width or bottom > img.height:
                raise InvalidCropError("Crop region exceeds the image bounds.")
            cropped = img.crop((region.x, region.y, right, bottom))
            buffer = io.BytesIO()
            cropped.save(buffer, format="PNG")
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidCropError("Could not process the crop.") from exc
    return Artifact(
        data=buffer.getvalue(),
        name=f"cropped-{file_stem(artifact.name)}.png",
        mime_type="image/png",
    )
