"""Scanline render driver.

This module provides a convenient wrapper around the core integrator that supports:
- Render settings validated up front (image size, samples, bounce budget)
- Rendering the image top to bottom in bands of scanlines
- Progress callbacks or a generator for reporting scanlines remaining
- Encoding the finished image as PPM or PNG

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.core.renderer import RenderSettings, Renderer
    >>> from pathtracer.scene.presets import create_materials_scene
    >>> from pathtracer.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_materials_scene()
    >>> setup_camera(camera)
    >>>
    >>> renderer = Renderer(RenderSettings(image_width=400, samples_per_pixel=100))
    >>> renderer.render()
    >>> renderer.save_image("spheres.png")
"""

from collections.abc import Callable, Generator
from dataclasses import dataclass
from pathlib import Path
from typing import TextIO

import numpy as np
import numpy.typing as npt

from pathtracer.core.integrator import (
    DEFAULT_MAX_DEPTH,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    clear_render_target,
    get_image_sum_numpy,
    get_samples_per_pixel,
    render_rows,
    setup_render_target,
)
from pathtracer.preview.export import (
    gamma_correct_and_quantize,
    save_png,
    save_ppm,
    write_ppm,
)

# Type alias for progress callback
# Callback receives (rows_done, total_rows)
ProgressCallback = Callable[[int, int], None]


@dataclass
class RenderSettings:
    """Image and sampling parameters for one render.

    Attributes:
        image_width: Output width in pixels.
        aspect_ratio: Width divided by height; the height is derived from it.
        samples_per_pixel: Number of jittered camera rays per pixel.
        max_depth: Bounce budget per camera ray.
    """

    image_width: int = 400
    aspect_ratio: float = 16.0 / 9.0
    samples_per_pixel: int = 100
    max_depth: int = DEFAULT_MAX_DEPTH

    def __post_init__(self) -> None:
        if self.image_width <= 0:
            raise ValueError(f"image_width must be positive, got {self.image_width}")
        if self.aspect_ratio <= 0:
            raise ValueError(f"aspect_ratio must be positive, got {self.aspect_ratio}")
        if self.samples_per_pixel <= 0:
            raise ValueError(f"samples_per_pixel must be positive, got {self.samples_per_pixel}")
        if self.max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {self.max_depth}")
        if self.image_height <= 0:
            raise ValueError(
                f"Image height for width {self.image_width} and aspect ratio "
                f"{self.aspect_ratio} is less than one pixel"
            )
        if self.image_width > MAX_IMAGE_WIDTH or self.image_height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.image_width}x{self.image_height}) exceed "
                f"maximum supported ({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )

    @property
    def image_height(self) -> int:
        """Output height in pixels, int(image_width / aspect_ratio)."""
        return int(self.image_width / self.aspect_ratio)


class Renderer:
    """Renders the current scene through the current camera.

    The camera must already be set up with setup_camera() and the scene built
    through a SceneManager. Rows are rendered from the top of the image down,
    so progress reads like a scanline counter.

    The renderer delegates to the global integrator buffers (which are Taichi
    fields), so only one renderer is live at a time.

    Attributes:
        settings: The RenderSettings this renderer was created with.
    """

    def __init__(self, settings: RenderSettings | None = None) -> None:
        """Initialize the renderer and its render target.

        Args:
            settings: Render settings. Defaults to RenderSettings().
        """
        self.settings = settings if settings is not None else RenderSettings()
        self._rows_done = 0
        setup_render_target(self.width, self.height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self.settings.image_width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self.settings.image_height

    @property
    def rows_done(self) -> int:
        """Get the number of scanlines rendered so far."""
        return self._rows_done

    @property
    def rows_remaining(self) -> int:
        """Get the number of scanlines still to render."""
        return self.height - self._rows_done

    @property
    def is_complete(self) -> bool:
        """Whether every scanline has been rendered."""
        return self._rows_done >= self.height

    def reset(self) -> None:
        """Clear the image so the next render starts from scratch."""
        clear_render_target()
        self._rows_done = 0

    def _render_band(self, rows: int) -> None:
        """Render the next band of up to `rows` scanlines below those done."""
        # Buffer rows count up from the bottom; scanlines are rendered from the top
        row_end = self.height - self._rows_done
        row_start = max(row_end - rows, 0)
        render_rows(
            row_start,
            row_end,
            self.settings.samples_per_pixel,
            self.settings.max_depth,
        )
        self._rows_done += row_end - row_start

    def render(
        self,
        callback: ProgressCallback | None = None,
        rows_per_batch: int = 1,
    ) -> None:
        """Render the remaining scanlines with an optional progress callback.

        Args:
            callback: Optional callback function called after each batch.
                Receives (rows_done, total_rows).
            rows_per_batch: Number of scanlines to render before each callback.

        Example:
            >>> def progress(done, total):
            ...     print(f"Scanlines remaining: {total - done}")
            >>> renderer.render(progress)
        """
        for rows_done, total_rows in self.render_progressive(rows_per_batch):
            if callback is not None:
                callback(rows_done, total_rows)

    def render_progressive(
        self,
        rows_per_batch: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render the remaining scanlines, yielding progress after each batch.

        This is a generator-based alternative to render() with callbacks.

        Args:
            rows_per_batch: Number of scanlines to render before each yield.

        Yields:
            Tuple of (rows_done, total_rows).

        Raises:
            ValueError: If rows_per_batch is not positive.
        """
        if rows_per_batch <= 0:
            raise ValueError(f"rows_per_batch must be positive, got {rows_per_batch}")

        while not self.is_complete:
            self._render_band(rows_per_batch)
            yield (self._rows_done, self.height)

    def get_image_sum_numpy(self) -> npt.NDArray[np.float64]:
        """Get the per-pixel sample sums, shape (height, width, 3), top row first."""
        return get_image_sum_numpy()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        """Get the gamma corrected 8-bit image, shape (height, width, 3)."""
        samples = get_samples_per_pixel() or self.settings.samples_per_pixel
        return gamma_correct_and_quantize(self.get_image_sum_numpy(), samples)

    def write_ppm(self, stream: TextIO) -> None:
        """Write the image as plain PPM (P3) to a text stream."""
        write_ppm(stream, self.get_image_uint8())

    def save_image(self, filepath: str | Path) -> None:
        """Save the rendered image to a file.

        The format follows the suffix: ".ppm" writes plain PPM, anything else
        is handed to Pillow (e.g. ".png").

        Args:
            filepath: Path to save the image (e.g., "output.png").
        """
        pixels = self.get_image_uint8()
        if Path(filepath).suffix.lower() == ".ppm":
            save_ppm(filepath, pixels)
        else:
            save_png(filepath, pixels)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"Renderer(width={self.width}, height={self.height}, "
            f"samples_per_pixel={self.settings.samples_per_pixel}, "
            f"max_depth={self.settings.max_depth}, rows_done={self.rows_done})"
        )
