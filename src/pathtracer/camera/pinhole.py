"""Pinhole camera: look-at placement, vertical field of view, primary rays.

setup_camera() turns a PinholeCamera into a viewport one unit in front of
the eye, described by an orthonormal basis:

- w points from look_at back to look_from
- u points to the right of the image
- v points up the image

and by the viewport's horizontal and vertical edge vectors and lower-left
corner. Rays start at look_from (there is no lens) and pass through
lower_left + s * horizontal + t * vertical, with s and t in [0, 1] running
left to right and bottom to top.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.camera.pinhole import PinholeCamera, setup_camera, get_ray
    >>>
    >>> setup_camera(PinholeCamera(
    ...     look_from=(13.0, 2.0, 3.0),
    ...     look_at=(0.0, 0.0, 0.0),
    ...     vup=(0.0, 1.0, 0.0),
    ...     vfov=20.0,
    ...     aspect_ratio=3.0 / 2.0,
    ... ))
    >>>
    >>> @ti.kernel
    ... def trace_center():
    ...     ray = get_ray(0.5, 0.5)
"""

import math
from dataclasses import dataclass

import numpy as np
import taichi as ti

from pathtracer.core.ray import Ray, make_ray, real


@dataclass
class PinholeCamera:
    """Where the camera is, where it looks and how wide it sees.

    Attributes:
        look_from: Eye position.
        look_at: Point at the center of the image. Must differ from look_from.
        vup: World direction that should appear upward in the image. Must
            not be parallel to look_at - look_from.
        vfov: Vertical field of view in degrees.
        aspect_ratio: Image width divided by image height.
    """

    look_from: tuple[float, float, float]
    look_at: tuple[float, float, float]
    vup: tuple[float, float, float]
    vfov: float
    aspect_ratio: float


# Derived viewport, written by setup_camera() and read by the kernels
_camera_origin = ti.Vector.field(3, dtype=real, shape=())
_camera_u = ti.Vector.field(3, dtype=real, shape=())
_camera_v = ti.Vector.field(3, dtype=real, shape=())
_camera_w = ti.Vector.field(3, dtype=real, shape=())
_horizontal = ti.Vector.field(3, dtype=real, shape=())
_vertical = ti.Vector.field(3, dtype=real, shape=())
_lower_left = ti.Vector.field(3, dtype=real, shape=())

_VIEWPORT_FIELDS = {
    "origin": _camera_origin,
    "u": _camera_u,
    "v": _camera_v,
    "w": _camera_w,
    "horizontal": _horizontal,
    "vertical": _vertical,
    "lower_left": _lower_left,
}


def setup_camera(camera: PinholeCamera) -> None:
    """Make camera the one every subsequent render looks through.

    The viewport is 2 * tan(vfov / 2) high and aspect_ratio times that
    wide. Degenerate placements (look_from == look_at, or vup parallel to
    the view direction) are not detected; they give non-finite rays.
    """
    viewport_height = 2.0 * math.tan(math.radians(camera.vfov) / 2.0)
    viewport_width = camera.aspect_ratio * viewport_height

    # Same float64 precision as the kernels
    eye = np.asarray(camera.look_from, dtype=np.float64)
    backward = eye - np.asarray(camera.look_at, dtype=np.float64)
    w = backward / np.linalg.norm(backward)
    right = np.cross(np.asarray(camera.vup, dtype=np.float64), w)
    u = right / np.linalg.norm(right)
    v = np.cross(w, u)

    horizontal = viewport_width * u
    vertical = viewport_height * v
    viewport = {
        "origin": eye,
        "u": u,
        "v": v,
        "w": w,
        "horizontal": horizontal,
        "vertical": vertical,
        "lower_left": eye - 0.5 * horizontal - 0.5 * vertical - w,
    }
    for name, value in viewport.items():
        _VIEWPORT_FIELDS[name][None] = value.tolist()


@ti.func
def get_ray(s: real, t: real) -> Ray:
    """Ray from the eye through viewport point (s, t).

    s = 0 is the left edge and t = 0 the bottom edge. The direction ends on
    the viewport, so it is not unit length.
    """
    origin = _camera_origin[None]
    target = _lower_left[None] + s * _horizontal[None] + t * _vertical[None]
    return make_ray(origin, target - origin)


@ti.func
def get_ray_jittered(pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Ray through a uniformly random point of pixel (pixel_i, pixel_j).

    Pixel coordinates run from the left (i) and from the bottom (j). They
    map to s = (i + xi) / (width - 1) and t = (j + xi') / (height - 1) with
    xi, xi' uniform in [0, 1), so the outermost pixels reach the viewport
    edges.
    """
    # A one-pixel axis would divide by zero
    s_scale = 1.0 / ti.cast(ti.max(width - 1, 1), real)
    t_scale = 1.0 / ti.cast(ti.max(height - 1, 1), real)

    s = (ti.cast(pixel_i, real) + ti.random(real)) * s_scale
    t = (ti.cast(pixel_j, real) + ti.random(real)) * t_scale
    return get_ray(s, t)


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Current viewport as plain tuples, keyed origin, u, v, w, horizontal,
    vertical and lower_left."""
    info = {}
    for name, field in _VIEWPORT_FIELDS.items():
        value = field[None]
        info[name] = (float(value[0]), float(value[1]), float(value[2]))
    return info
