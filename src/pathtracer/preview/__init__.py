"""Preview module for rendered image output.

This module handles turning the accumulated render buffer into files:

Components:
    export: Gamma correction, 8-bit quantization, PPM and PNG writers

The render buffer holds per-pixel sums of sample radiance. Export divides
by the sample count, applies gamma 2 and truncates to 8 bits per channel.

Example:
    >>> from pathtracer.preview import save_ppm
    >>> from pathtracer.core.renderer import Renderer
    >>>
    >>> renderer = Renderer()
    >>> renderer.render()
    >>> save_ppm("output.ppm", renderer.get_image_uint8())
"""

from pathtracer.preview.export import (
    MAX_INTENSITY,
    gamma_correct_and_quantize,
    save_png,
    save_ppm,
    write_ppm,
)

__all__ = [
    "MAX_INTENSITY",
    "gamma_correct_and_quantize",
    "write_ppm",
    "save_ppm",
    "save_png",
]
