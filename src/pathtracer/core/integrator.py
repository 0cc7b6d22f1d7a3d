"""Path tracing integrator.

This module implements the radiance estimator and the pixel accumulation
kernels. A camera ray is followed through the scene: every hit asks the
surface material to scatter it, multiplying the path throughput by the
material's attenuation, until the ray escapes to the sky, is absorbed, or
runs out of its bounce budget.

The only light in the scene is the sky: a vertical gradient from white at the
horizon-below to light blue overhead.

Key features:
    - Material dispatch over a closed set of types (Lambertian, Metal, Dielectric)
    - Explicit bounce budget (max_depth); a spent budget contributes black
    - Jittered multi-sample anti-aliasing
    - Per-pixel sample sums, averaged and gamma corrected on output

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.core.integrator import render_image, setup_render_target
    >>> from pathtracer.scene.presets import create_materials_scene
    >>> from pathtracer.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_materials_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(400, 225)
    >>> render_image(samples_per_pixel=100, max_depth=50)
"""

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from pathtracer.camera.pinhole import get_ray_jittered
from pathtracer.core.ray import real, unit_vector, vec3
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.lambertian import scatter_lambertian_by_id
from pathtracer.materials.metal import scatter_metal_by_id
from pathtracer.scene.intersection import intersect_scene
from pathtracer.scene.manager import (
    MaterialType,
    get_material_type,
    get_material_type_index,
)

# =============================================================================
# Rendering Constants
# =============================================================================

# Default bounce budget per camera ray
DEFAULT_MAX_DEPTH = 50

# Hits closer than T_MIN are ignored so scattered rays do not re-hit the
# surface they start on (shadow acne)
T_MIN = 0.001
T_MAX = tm.inf

# Sky gradient endpoints
SKY_BOTTOM_COLOR = vec3(1.0, 1.0, 1.0)
SKY_TOP_COLOR = vec3(0.5, 0.7, 1.0)


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Per-pixel sum of sample radiance, indexed [x, y] with y = 0 at the bottom
_color_buffer = ti.Vector.field(3, dtype=real, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Samples summed into each rendered pixel (0 until a row is rendered)
_samples_per_pixel = ti.field(dtype=ti.i32, shape=())

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers.

    Args:
        width: Image width in pixels (max MAX_IMAGE_WIDTH).
        height: Image height in pixels (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are not positive or exceed the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions ({width}x{height}) must be positive")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffers to zero."""
    _color_buffer.fill(0.0)
    _samples_per_pixel[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions as (width, height)."""
    return int(_image_width[None]), int(_image_height[None])


def get_samples_per_pixel() -> int:
    """Get the number of samples summed into each rendered pixel."""
    return int(_samples_per_pixel[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


def _check_render_args(samples_per_pixel: int, max_depth: int) -> None:
    """Validate per-render sampling parameters."""
    if samples_per_pixel <= 0:
        raise ValueError(f"samples_per_pixel must be positive, got {samples_per_pixel}")
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")


# =============================================================================
# Sky and Material Dispatch
# =============================================================================


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Background radiance for a ray that escapes the scene.

    Blends linearly from white to light blue by t = 0.5 * (unit(direction).y + 1),
    so straight down is white and straight up is (0.5, 0.7, 1.0).

    Args:
        direction: The ray direction (any length).

    Returns:
        The sky color seen along the direction.
    """
    t = 0.5 * (unit_vector(direction).y + 1.0)
    return (1.0 - t) * SKY_BOTTOM_COLOR + t * SKY_TOP_COLOR


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
):
    """Dispatch to the scattering function of the hit material.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction.
        normal: The surface normal (unit length, facing against the ray).
        front_face: 1 if the ray hit the outside of the surface.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter). Unknown
        material IDs absorb the ray.
    """
    mat_type = get_material_type(material_id)
    type_index = get_material_type_index(material_id)

    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, normal
        )

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident_direction, normal
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def ray_color(ray_origin: vec3, ray_direction: vec3, max_depth: ti.i32) -> vec3:
    """Estimate the radiance arriving along a ray.

    Loop form of the recursive estimator
        color(ray, depth) = black                          if depth <= 0
                          = attenuation * color(child, depth - 1)   on scatter
                          = black                          on absorption
                          = sky_color(direction)           on a miss
    carrying the product of attenuations as the path throughput.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction of the ray.
        max_depth: Number of intersections the path may perform.

    Returns:
        The estimated radiance (RGB).
    """
    origin = ray_origin
    direction = ray_direction
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)

    # Taichi funcs cannot break out of loops, so iterate with a flag.
    # A path still active after the loop has spent its budget: black.
    active = 1

    for _ in range(max_depth):
        if active == 1:
            rec = intersect_scene(origin, direction, T_MIN, T_MAX)

            if rec.hit == 0:
                color = throughput * sky_color(direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    rec.material_id, direction, rec.normal, rec.front_face
                )
                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    origin = rec.point
                    direction = scattered_direction

    return color


@ti.func
def sample_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
) -> vec3:
    """Sum the radiance of jittered camera rays through one pixel.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of camera rays to trace.
        max_depth: Bounce budget per ray.

    Returns:
        The sum (not the average) of the sample radiances.
    """
    total = vec3(0.0, 0.0, 0.0)
    for _ in range(samples_per_pixel):
        ray = get_ray_jittered(pixel_i, pixel_j, width, height)
        total += ray_color(ray.origin, ray.direction, max_depth)
    return total


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_rows(
    row_start: ti.i32,
    row_end: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
):
    """Render rows [row_start, row_end) into the color buffer."""
    for i, j in ti.ndrange(width, (row_start, row_end)):
        _color_buffer[i, j] = sample_pixel(i, j, width, height, samples_per_pixel, max_depth)


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32,
    pixel_j: ti.i32,
    width: ti.i32,
    height: ti.i32,
    samples_per_pixel: ti.i32,
    max_depth: ti.i32,
) -> vec3:
    """Render one pixel without touching the color buffer."""
    return sample_pixel(pixel_i, pixel_j, width, height, samples_per_pixel, max_depth)


@ti.kernel
def _trace_single_ray(origin: vec3, direction: vec3, max_depth: ti.i32) -> vec3:
    """Evaluate ray_color for one ray."""
    return ray_color(origin, direction, max_depth)


# =============================================================================
# Public Rendering API
# =============================================================================


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> tuple[float, float, float]:
    """Estimate the radiance along a single ray through the current scene.

    Args:
        origin: Ray origin (x, y, z).
        direction: Ray direction (x, y, z), any non-zero length.
        max_depth: Bounce budget.

    Returns:
        Tuple of (R, G, B) radiance.
    """
    color = _trace_single_ray(
        vec3(origin[0], origin[1], origin[2]),
        vec3(direction[0], direction[1], direction[2]),
        max_depth,
    )
    return (float(color[0]), float(color[1]), float(color[2]))


def render_pixel(
    pixel_i: int,
    pixel_j: int,
    width: int,
    height: int,
    samples_per_pixel: int,
    max_depth: int = DEFAULT_MAX_DEPTH,
    average: bool = False,
) -> tuple[float, float, float]:
    """Render one pixel with the current camera and scene.

    Does not need a render target. By default the result is the sum of the
    sample radiances, the value the image buffer stores; pass it to
    gamma_correct_and_quantize() together with samples_per_pixel to get
    display values. With average=True the sum is divided by
    samples_per_pixel, giving the pixel's linear Color.

    Args:
        pixel_i: Pixel x-coordinate (0 = left).
        pixel_j: Pixel y-coordinate (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of jittered camera rays.
        max_depth: Bounce budget per ray.
        average: Return the mean instead of the sum.

    Returns:
        Tuple of (R, G, B) sample sums, or their mean with average=True.

    Raises:
        ValueError: If samples_per_pixel or max_depth is out of range.
    """
    _check_render_args(samples_per_pixel, max_depth)
    color = _render_single_pixel(pixel_i, pixel_j, width, height, samples_per_pixel, max_depth)
    scale = 1.0 / samples_per_pixel if average else 1.0
    return (float(color[0]) * scale, float(color[1]) * scale, float(color[2]) * scale)


def render_rows(
    row_start: int,
    row_end: int,
    samples_per_pixel: int,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> None:
    """Render a band of rows into the color buffer.

    Rows are numbered from the bottom of the image (row 0) to the top.
    All rows of one image must use the same samples_per_pixel.

    Args:
        row_start: First row to render (inclusive).
        row_end: Last row to render (exclusive).
        samples_per_pixel: Number of jittered camera rays per pixel.
        max_depth: Bounce budget per ray.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the row range or sampling parameters are invalid, or
            samples_per_pixel differs from rows already rendered.
    """
    _check_render_target_initialized()
    _check_render_args(samples_per_pixel, max_depth)

    width, height = get_image_dimensions()
    if not 0 <= row_start <= row_end <= height:
        raise ValueError(f"Invalid row range [{row_start}, {row_end}) for height {height}")

    current = _samples_per_pixel[None]
    if current not in (0, samples_per_pixel):
        raise ValueError(
            f"Image already holds {current} samples per pixel, cannot mix with "
            f"{samples_per_pixel}. Call clear_render_target() first."
        )

    if row_start == row_end:
        return

    _samples_per_pixel[None] = samples_per_pixel
    _render_rows(row_start, row_end, width, height, samples_per_pixel, max_depth)


def render_image(samples_per_pixel: int, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
    """Render every row of the image.

    Args:
        samples_per_pixel: Number of jittered camera rays per pixel.
        max_depth: Bounce budget per ray.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    _, height = get_image_dimensions()
    render_rows(0, height, samples_per_pixel, max_depth)


def get_image_sum_numpy() -> npt.NDArray[np.float64]:
    """Get the per-pixel sample sums as a NumPy array.

    The array shape is (height, width, 3) in scanline order: the first row is
    the top of the image, and each row runs left to right.

    Returns:
        NumPy array of shape (height, width, 3), dtype float64.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    image = _color_buffer.to_numpy()[:width, :height, :]

    # Transpose from (width, height, 3) to (height, width, 3)
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (buffer rows count up from the bottom)
    image = np.flipud(image)

    return np.ascontiguousarray(image, dtype=np.float64)
