"""Image validation at the engine boundary.

The engine only accepts an already-decoded pixel array (or a PIL image)
and checks it before any detector runs. decode_image_bytes() is the HTTP
layer's helper for raw uploads. A failed check raises PreconditionError, the sole failure
mode of analyze().
"""

import io
import logging
from dataclasses import dataclass
from typing import Any

import numpy as np
from PIL import Image, UnidentifiedImageError

from foodguard.errors import PreconditionError

logger = logging.getLogger(__name__)

MIN_IMAGE_SIDE = 8


@dataclass(frozen=True)
class FoodImage:
    """Validated RGB image shared read-only by every detector task.

    ``pixels`` is float32, shape (H, W, 3), values in [0, 1], not writeable.
    """

    pixels: np.ndarray
    source: str = ""

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])


def validate_image(image: Any, source: str = "") -> FoodImage:
    """Normalize a decoded image into a read-only FoodImage or raise PreconditionError."""
    if isinstance(image, FoodImage):
        return image
    if isinstance(image, Image.Image):
        image = np.asarray(image.convert("RGB"))
    if not isinstance(image, np.ndarray):
        raise PreconditionError(f"expected a decoded image array, got {type(image).__name__}")
    if image.size == 0:
        raise PreconditionError("image is empty")
    if (
        image.dtype == np.bool_
        or not np.issubdtype(image.dtype, np.number)
        or np.iscomplexobj(image)
    ):
        raise PreconditionError(f"unsupported pixel dtype: {image.dtype}")

    arr = image
    if arr.ndim == 2:
        arr = arr[:, :, None]
    if arr.ndim != 3:
        raise PreconditionError(f"expected 2-D or 3-D image, got shape {image.shape}")
    channels = arr.shape[2]
    if channels == 1:
        arr = np.repeat(arr, 3, axis=2)
    elif channels == 4:
        arr = arr[:, :, :3]
    elif channels != 3:
        raise PreconditionError(f"expected 1, 3 or 4 channels, got {channels}")

    height, width = arr.shape[:2]
    if min(height, width) < MIN_IMAGE_SIDE:
        raise PreconditionError(
            f"image too small: {width}x{height} (min side {MIN_IMAGE_SIDE}px)"
        )

    if np.issubdtype(arr.dtype, np.integer):
        if arr.min() < 0 or arr.max() > 255:
            raise PreconditionError("integer pixels must be in [0, 255]")
        pixels = arr.astype(np.float32) / 255.0
    else:
        if not np.all(np.isfinite(arr)):
            raise PreconditionError("image contains NaN or infinite pixels")
        if arr.min() < 0.0 or arr.max() > 1.0:
            raise PreconditionError("float pixels must be in [0, 1]")
        pixels = arr.astype(np.float32)

    pixels = np.ascontiguousarray(pixels)
    pixels.setflags(write=False)
    return FoodImage(pixels=pixels, source=source)


def decode_image_bytes(content: bytes, max_side: int | None = None, source: str = "") -> FoodImage:
    """Decode uploaded bytes with Pillow, optionally downscale, then validate."""
    if not content:
        raise PreconditionError("empty upload")
    try:
        with Image.open(io.BytesIO(content)) as img:
            img = img.convert("RGB")
            if max_side and max(img.size) > max_side:
                img.thumbnail((max_side, max_side))
            arr = np.asarray(img)
    except (UnidentifiedImageError, OSError) as e:
        logger.info("Rejected undecodable image %s: %s", source or "<upload>", e)
        raise PreconditionError("could not decode image") from e
    return validate_image(arr, source=source)
