"""Axis-aligned pinhole camera for primary ray generation.

The camera sits at ``origin`` looking down the -Z axis with +Y up. Its image
plane is a viewport of the given width and height placed ``focal_length`` in
front of the origin. Three vectors are derived once on the host:

    horizontal        = (viewport_width, 0, 0)
    vertical          = (0, viewport_height, 0)
    lower_left_corner = origin - horizontal/2 - vertical/2 - (0, 0, focal_length)

``get_ray(u, v)`` then interpolates across the viewport with normalized
coordinates, u = 0..1 left to right and v = 0..1 bottom to top.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.camera.pinhole import Camera, setup_camera, get_ray
    >>>
    >>> camera = Camera(
    ...     origin=(0.0, 0.0, 0.0),
    ...     viewport_height=2.0,
    ...     viewport_width=2.0 * 4.0 / 3.0,
    ...     focal_length=1.0,
    ... )
    >>> setup_camera(camera)
    >>>
    >>> @ti.kernel
    ... def render():
    ...     ray = get_ray(0.5, 0.5)  # Ray through image center
"""

from dataclasses import dataclass, field

import numpy as np
import taichi as ti

from pathtracer.core.ray import Ray, make_ray

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class Camera:
    """Configuration for the pinhole camera.

    Attributes:
        origin: Camera position in world space (x, y, z).
        viewport_height: Height of the image plane in world units.
        viewport_width: Width of the image plane in world units.
        focal_length: Distance from the origin to the image plane.
        horizontal: Derived full-width span of the viewport.
        vertical: Derived full-height span of the viewport.
        lower_left_corner: Derived lower-left corner of the viewport.
    """

    origin: tuple[float, float, float]
    viewport_height: float
    viewport_width: float
    focal_length: float
    horizontal: tuple[float, float, float] = field(init=False)
    vertical: tuple[float, float, float] = field(init=False)
    lower_left_corner: tuple[float, float, float] = field(init=False)

    def __post_init__(self) -> None:
        if self.viewport_height <= 0.0 or self.viewport_width <= 0.0:
            raise ValueError(
                f"Viewport must have positive size, got "
                f"{self.viewport_width}x{self.viewport_height}"
            )
        if self.focal_length <= 0.0:
            raise ValueError(f"Focal length must be positive, got {self.focal_length}")

        origin = np.array(self.origin, dtype=np.float64)
        horizontal = np.array([self.viewport_width, 0.0, 0.0])
        vertical = np.array([0.0, self.viewport_height, 0.0])
        lower_left = (
            origin - horizontal / 2.0 - vertical / 2.0 - np.array([0.0, 0.0, self.focal_length])
        )

        self.horizontal = tuple(horizontal.tolist())
        self.vertical = tuple(vertical.tolist())
        self.lower_left_corner = tuple(lower_left.tolist())

    @classmethod
    def for_aspect_ratio(
        cls,
        aspect_ratio: float,
        viewport_height: float = 2.0,
        focal_length: float = 1.0,
        origin: tuple[float, float, float] = (0.0, 0.0, 0.0),
    ) -> "Camera":
        """Create a camera whose viewport matches an image aspect ratio.

        Args:
            aspect_ratio: Image width divided by image height.
            viewport_height: Height of the viewport (default 2.0).
            focal_length: Distance to the viewport (default 1.0).
            origin: Camera position (default world origin).

        Returns:
            A Camera with viewport_width = aspect_ratio * viewport_height.
        """
        return cls(
            origin=origin,
            viewport_height=viewport_height,
            viewport_width=aspect_ratio * viewport_height,
            focal_length=focal_length,
        )


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_origin = ti.Vector.field(3, dtype=ti.f64, shape=())
_viewport_horizontal = ti.Vector.field(3, dtype=ti.f64, shape=())
_viewport_vertical = ti.Vector.field(3, dtype=ti.f64, shape=())
_lower_left_corner = ti.Vector.field(3, dtype=ti.f64, shape=())


def setup_camera(camera: Camera) -> None:
    """Upload a camera configuration for use by get_ray().

    Must be called before rendering, from Python scope.

    Args:
        camera: Camera configuration with its derived viewport vectors.
    """
    _camera_origin[None] = list(camera.origin)
    _viewport_horizontal[None] = list(camera.horizontal)
    _viewport_vertical[None] = list(camera.vertical)
    _lower_left_corner[None] = list(camera.lower_left_corner)


# =============================================================================
# Ray Generation
# =============================================================================


@ti.func
def get_ray(u: ti.f64, v: ti.f64) -> Ray:
    """Generate a ray through normalized image coordinates (u, v).

    - u = 0: left edge of image, u = 1: right edge
    - v = 0: bottom edge of image, v = 1: top edge

    The direction is the unnormalized offset from the camera origin to the
    point on the viewport.

    Args:
        u: Horizontal coordinate in [0, 1].
        v: Vertical coordinate in [0, 1].

    Returns:
        A Ray starting at the camera origin.
    """
    origin = _camera_origin[None]
    point_on_viewport = (
        _lower_left_corner[None] + u * _viewport_horizontal[None] + v * _viewport_vertical[None]
    )
    return make_ray(origin, point_on_viewport - origin)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get the uploaded camera state for debugging.

    Returns:
        Dictionary with origin, horizontal, vertical and lower_left.
    """
    origin_vec = _camera_origin[None]
    h_vec = _viewport_horizontal[None]
    vert_vec = _viewport_vertical[None]
    ll_vec = _lower_left_corner[None]

    return {
        "origin": (float(origin_vec[0]), float(origin_vec[1]), float(origin_vec[2])),
        "horizontal": (float(h_vec[0]), float(h_vec[1]), float(h_vec[2])),
        "vertical": (float(vert_vec[0]), float(vert_vec[1]), float(vert_vec[2])),
        "lower_left": (float(ll_vec[0]), float(ll_vec[1]), float(ll_vec[2])),
    }
