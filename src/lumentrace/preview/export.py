"""Image export utilities for rendered images.

Images handed to these functions are already gamma-corrected float arrays of
shape (height, width, 3), top row first, as returned by
``get_image_numpy()``.

Supported formats:
    - PPM (plain-text P3, 8-bit)
    - PNG (8-bit via Pillow)

Example:
    >>> from lumentrace.preview.export import save_image
    >>> from lumentrace.core.progressive import ProgressiveRenderer
    >>>
    >>> renderer = ProgressiveRenderer(400, 225)
    >>> renderer.render(100)
    >>> save_image(renderer.get_image_numpy(), "output.ppm")
"""

import logging
from pathlib import Path

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

logger = logging.getLogger(__name__)

SUPPORTED_FORMATS = (".ppm", ".png")


def image_to_uint8(image: npt.NDArray[np.floating]) -> npt.NDArray[np.uint8]:
    """Convert a gamma-corrected float image to 8-bit.

    Values are clamped to [0, 1] and mapped with ``floor(255.999 * c)``, so
    1.0 becomes 255 and every channel value gets an equal-width bucket.

    Args:
        image: Float image array of shape (H, W, 3).

    Returns:
        8-bit image array of shape (H, W, 3) with dtype uint8.
    """
    clamped = np.clip(np.asarray(image, dtype=np.float64), 0.0, 1.0)
    return np.floor(255.999 * clamped).astype(np.uint8)


def _check_image_shape(image: npt.NDArray) -> None:
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an image of shape (H, W, 3), got {image.shape}")


def format_ppm(image: npt.NDArray[np.floating]) -> str:
    """Encode an image as plain-text PPM (P3).

    The header is ``P3``, the dimensions and the maximum value 255, each on
    its own line, followed by one ``"r g b"`` line per pixel, top row first.
    """
    _check_image_shape(image)
    pixels = image_to_uint8(image)
    height, width, _ = pixels.shape

    lines = ["P3", f"{width} {height}", "255"]
    lines.extend(f"{r} {g} {b}" for r, g, b in pixels.reshape(-1, 3).tolist())
    return "\n".join(lines) + "\n"


def save_ppm(image: npt.NDArray[np.floating], filepath: str | Path) -> None:
    """Save an image as a plain-text PPM (P3) file."""
    Path(filepath).write_text(format_ppm(image), encoding="ascii")


def save_png(image: npt.NDArray[np.floating], filepath: str | Path) -> None:
    """Save an image as an 8-bit PNG file."""
    _check_image_shape(image)
    pil_image = PILImage.fromarray(image_to_uint8(image), mode="RGB")
    pil_image.save(filepath)


def save_image(image: npt.NDArray[np.floating], filepath: str | Path) -> None:
    """Save an image, choosing the format from the file extension.

    Raises:
        ValueError: If the extension is not .ppm or .png.
    """
    suffix = Path(filepath).suffix.lower()
    if suffix == ".ppm":
        save_ppm(image, filepath)
    elif suffix == ".png":
        save_png(image, filepath)
    else:
        raise ValueError(
            f"Unsupported image format {suffix!r}; expected one of {', '.join(SUPPORTED_FORMATS)}"
        )
    logger.info("Saved %dx%d image to %s", image.shape[1], image.shape[0], filepath)


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Compute root mean squared error between two images.

    Raises:
        ValueError: If image shapes don't match.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")

    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
