"""Artwork selection and icon processing.

LaunchBox tags every image with a type ("Box - Front", "Clear Logo", ...)
and usually a region. Each asset category the host asks for maps to an
ordered tuple of types; the first type that has any image wins, and the
region priority list breaks ties between images of that type.
"""

import io
import logging
from typing import TYPE_CHECKING, Iterable, Sequence

from django.conf import settings
from PIL import Image, ImageOps

from .regions import region_rank

if TYPE_CHECKING:
    from .models import GameImage

logger = logging.getLogger(__name__)

COVER_TYPES = (
    "Box - Front",
    "Box - Front - Reconstructed",
    "Fanart - Box - Front",
    "Box - 3D",
)

BACKGROUND_TYPES = (
    "Fanart - Background",
    "Screenshot - Gameplay",
    "Screenshot - Game Title",
)

ICON_TYPES = (
    "Clear Logo",
    "Square",
    "Banner",
)

ICON_SIZE = 256

DEFAULT_IMAGE_BASE_URL = "https://images.launchbox-app.com/"


def select_best_image(
    candidates: Iterable["GameImage"],
    preferred_types: Sequence[str],
    region_priority: dict[str, int] | None,
) -> "GameImage | None":
    """Pick the single best image for an asset category.

    Args:
        candidates: Images of one game, in store order
        preferred_types: LaunchBox image types, most preferred first
        region_priority: Region -> rank mapping for the current session

    Returns:
        The chosen image, or None if there are no candidates
    """
    candidates = list(candidates)
    if not candidates:
        return None

    for image_type in preferred_types:
        typed = [c for c in candidates if c.image_type == image_type]
        if not typed:
            continue

        priority = region_priority or {}
        ranked = [c for c in typed if (c.region or "") in priority]
        if ranked:
            # min() keeps the first of equally ranked images
            return min(ranked, key=lambda c: region_rank(priority, c.region))
        return typed[0]

    return candidates[0]


def image_url(file_name: str) -> str:
    """Build the remote URL for a LaunchBox image file name."""
    base_url = getattr(settings, "GAMESDB_IMAGE_BASE_URL", DEFAULT_IMAGE_BASE_URL)
    return base_url.rstrip("/") + "/" + file_name.lstrip("/")


def make_icon(data: bytes, size: int = ICON_SIZE) -> bytes:
    """Turn raw image bytes into a square PNG icon.

    The image keeps its aspect ratio and is padded with transparency to
    fill the square.

    Args:
        data: Encoded source image (PNG, JPEG, ...)
        size: Edge length of the icon in pixels

    Returns:
        PNG-encoded icon bytes

    Raises:
        ValueError: If the bytes can't be decoded as an image
    """
    output = io.BytesIO()

    try:
        with Image.open(io.BytesIO(data)) as img:
            if img.mode != "RGBA":
                img = img.convert("RGBA")
            original_width, original_height = img.size
            icon = ImageOps.pad(
                img,
                (size, size),
                method=Image.Resampling.LANCZOS,
                color=(0, 0, 0, 0),
            )
            icon.save(output, format="PNG")
    except (OSError, Image.DecompressionBombError) as e:
        logger.error(f"Failed to process icon image: {e}")
        raise ValueError(f"Failed to process image: {e}") from e

    logger.debug(
        f"Resized icon from {original_width}x{original_height} to {size}x{size}"
    )
    return output.getvalue()
