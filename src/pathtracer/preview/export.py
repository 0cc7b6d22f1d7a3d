"""Image export utilities for rendered images.

This module turns per-pixel sample sums into display values and writes them
to files.

Color encoding, per channel:
    c = sqrt(sum / samples_per_pixel)       (average, then gamma 2)
    value = int(256 * clamp(c, 0, 0.999))   (truncated to 0..255)

Supported formats:
    - Plain PPM (P3), top row first
    - PNG (8-bit via Pillow)

Example:
    >>> from pathtracer.preview.export import save_png
    >>> from pathtracer.core.renderer import Renderer
    >>>
    >>> renderer = Renderer()
    >>> renderer.render()
    >>> save_png("output.png", renderer.get_image_uint8())
"""

from __future__ import annotations

from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

# Largest linear value kept before scaling, so 1.0 maps to 255 and not 256
MAX_INTENSITY = 0.999


def gamma_correct_and_quantize(
    image_sum: npt.ArrayLike,
    samples_per_pixel: int,
) -> npt.NDArray[np.uint8]:
    """Average sample sums, apply gamma 2 and quantize to 8 bits.

    Works on a single color (shape (3,)) or a whole image (shape (H, W, 3)).

    Args:
        image_sum: Per-pixel sums of sample radiance.
        samples_per_pixel: Number of samples in each sum.

    Returns:
        Array of the same shape with dtype uint8.

    Raises:
        ValueError: If samples_per_pixel is not positive.
    """
    if samples_per_pixel <= 0:
        raise ValueError(f"samples_per_pixel must be positive, got {samples_per_pixel}")

    scale = 1.0 / samples_per_pixel
    linear = np.asarray(image_sum, dtype=np.float64) * scale

    # Negative sums cannot come out of the tracer; clip before sqrt anyway
    corrected = np.sqrt(np.clip(linear, 0.0, None))

    return (256.0 * np.clip(corrected, 0.0, MAX_INTENSITY)).astype(np.uint8)


def write_ppm(stream: TextIO, pixels: npt.NDArray[np.uint8]) -> None:
    """Write pixels as plain PPM (P3).

    The header is "P3", then "width height", then "255"; each pixel follows
    on its own line as "r g b", rows from the top, left to right.

    Args:
        stream: Text stream to write to.
        pixels: Array of shape (H, W, 3), top row first.

    Raises:
        ValueError: If pixels does not have shape (H, W, 3).
    """
    if pixels.ndim != 3 or pixels.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {pixels.shape}")

    height, width = pixels.shape[:2]
    stream.write(f"P3\n{width} {height}\n255\n")
    for r, g, b in pixels.reshape(-1, 3).tolist():
        stream.write(f"{r} {g} {b}\n")


def save_ppm(filepath: str | Path, pixels: npt.NDArray[np.uint8]) -> None:
    """Save pixels of shape (H, W, 3) as a plain PPM file."""
    with open(filepath, "w", encoding="ascii") as f:
        write_ppm(f, pixels)


def save_png(filepath: str | Path, pixels: npt.NDArray[np.uint8]) -> None:
    """Save pixels of shape (H, W, 3) as a PNG file.

    Example:
        >>> save_png("output.png", renderer.get_image_uint8())
    """
    pil_image = PILImage.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8), mode="RGB")
    pil_image.save(filepath)
