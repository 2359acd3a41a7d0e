"""Path tracing integrator for Monte Carlo light transport.

This module implements the rendering kernels: rays leave the camera through
jittered pixel positions, bounce off spheres according to their materials, and
pick up the sky gradient when they escape the scene.

Light transport is a product of attenuations along the path, so the tracer
runs as a loop carrying a throughput instead of recursing:

    color = albedo_1 * albedo_2 * ... * albedo_k * sky(direction_k)

A path that is absorbed, or that is still bouncing after ``max_depth``
intersection queries, contributes black.

Key features:
    - Material dispatch (Lambertian, Metal, Dielectric)
    - Sky gradient for rays that miss every sphere
    - Per-pixel random streams, so a seed reproduces a render exactly
    - Sample accumulation and a resolve step producing 8-bit RGB

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.core.integrator import (
    ...     render_image, resolve_pixels, setup_render_target
    ... )
    >>> from pathtracer.scene.default_scene import create_default_scene
    >>> from pathtracer.camera.pinhole import setup_camera
    >>>
    >>> scene, camera = create_default_scene(800 / 600)
    >>> setup_camera(camera)
    >>> setup_render_target(800, 600)
    >>> render_image(num_samples=6)
    >>> resolve_pixels()
"""

import numpy as np
import taichi as ti
import taichi.math as tm

from pathtracer.camera.pinhole import get_ray
from pathtracer.core.ray import normalize, vec3
from pathtracer.core.sampler import MAX_STREAMS, random_f64
from pathtracer.materials.dielectric import scatter_dielectric_by_id
from pathtracer.materials.lambertian import scatter_lambertian_by_id
from pathtracer.materials.metal import scatter_metal_by_id
from pathtracer.scene.intersection import intersect_scene
from pathtracer.scene.manager import MaterialType, lookup_material

# =============================================================================
# Rendering Constants
# =============================================================================

# Maximum number of intersection queries along one path
MAX_DEPTH = 50

# Ignore hits this close to the ray origin (shadow acne)
T_MIN = 0.001
T_MAX = tm.inf

# Sky gradient end points
SKY_HORIZON_COLOR = vec3(1.0, 1.0, 1.0)
SKY_ZENITH_COLOR = vec3(0.5, 0.7, 1.0)

# Largest channel value before quantization, keeps 256 * value below 256
MAX_CHANNEL_VALUE = 0.999


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Linear colour sums, indexed [x, y] with y = 0 on the top row
_color_sum = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

# Resolved 8-bit RGB image in row-major order, indexed [y, x, channel]
_pixels = ti.field(dtype=ti.u8, shape=(MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH, 3))

# Number of samples accumulated per pixel
_samples_rendered = ti.field(dtype=ti.i32, shape=())

# Flag to track if render target is initialized
_render_target_initialized = ti.field(dtype=ti.i32, shape=())

# Scratch output of the single-ray kernels
_trace_result = ti.Vector.field(3, dtype=ti.f64, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffers.

    Sets the active image dimensions and clears the buffers. The buffers are
    preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT to avoid Taichi kernel
    recompilation.

    Args:
        width: Image width in pixels, at least 2 (max MAX_IMAGE_WIDTH).
        height: Image height in pixels, at least 2 (max MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If dimensions are too small or exceed the maximum.
    """
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )
    # Pixel coordinates are divided by (width - 1) and (height - 1)
    if width < 2 or height < 2:
        raise ValueError(f"Image dimensions ({width}x{height}) must be at least 2x2")

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the accumulated samples and the resolved pixels."""
    _color_sum.fill(0.0)
    _pixels.fill(0)
    _samples_rendered[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_render_target_initialized() -> None:
    """Check if render target is initialized and raise if not."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")


# =============================================================================
# Material Dispatch
# =============================================================================


@ti.func
def _scatter_material(
    material_id: ti.i32,
    incident_direction: vec3,
    normal: vec3,
    front_face: ti.i32,
    stream: ti.i32,
):
    """Dispatch to the appropriate material scattering function.

    Args:
        material_id: The unified material ID.
        incident_direction: The incoming ray direction (any length).
        normal: The unit surface normal, facing against the ray.
        front_face: 1 if hit front face, 0 if back face.
        stream: The random stream of the pixel being traced.

    Returns:
        A tuple of (scattered_direction, attenuation, did_scatter) where:
        - scattered_direction: The new ray direction (not normalized).
        - attenuation: The color attenuation for this bounce.
        - did_scatter: 1 if ray scattered, 0 if absorbed.
    """
    entry = lookup_material(material_id)
    mat_type = entry[0]
    type_index = entry[1]

    # Unknown material IDs absorb
    scattered_direction = vec3(0.0, 0.0, 0.0)
    attenuation = vec3(0.0, 0.0, 0.0)
    did_scatter = 0

    if mat_type == int(MaterialType.LAMBERTIAN):
        scattered_direction, attenuation, did_scatter = scatter_lambertian_by_id(
            type_index, normal, stream
        )

    elif mat_type == int(MaterialType.METAL):
        scattered_direction, attenuation, did_scatter = scatter_metal_by_id(
            type_index, incident_direction, normal, stream
        )

    elif mat_type == int(MaterialType.DIELECTRIC):
        scattered_direction, attenuation, did_scatter = scatter_dielectric_by_id(
            type_index, incident_direction, normal, front_face, stream
        )

    return scattered_direction, attenuation, did_scatter


# =============================================================================
# Path Tracing Core
# =============================================================================


@ti.func
def sky_color(direction: vec3) -> vec3:
    """Background radiance for a ray that escapes the scene.

    Blends white at the horizon into sky blue straight up, using the height of
    the unit direction: t = 0.5 * (unit(direction).y + 1).
    """
    t = 0.5 * (normalize(direction).y + 1.0)
    return (1.0 - t) * SKY_HORIZON_COLOR + t * SKY_ZENITH_COLOR


@ti.func
def ray_color(origin: vec3, direction: vec3, max_depth: ti.i32, stream: ti.i32) -> vec3:
    """Estimate the radiance arriving along a ray.

    Args:
        origin: The starting point of the ray.
        direction: The direction of the ray (any length).
        max_depth: Maximum number of intersection queries. 0 returns black.
        stream: The random stream to draw scattering decisions from.

    Returns:
        The linear RGB radiance carried back along the ray.
    """
    color = vec3(0.0, 0.0, 0.0)
    throughput = vec3(1.0, 1.0, 1.0)
    ray_origin = origin
    ray_direction = direction

    # Active flag for path continuation (no break inside ti.func loops)
    active = 1

    for _ in range(max_depth):
        if active == 1:
            hit_record = intersect_scene(ray_origin, ray_direction, T_MIN, T_MAX)

            if hit_record.hit == 0:
                color = throughput * sky_color(ray_direction)
                active = 0
            else:
                scattered_direction, attenuation, did_scatter = _scatter_material(
                    hit_record.material_id,
                    ray_direction,
                    hit_record.normal,
                    hit_record.front_face,
                    stream,
                )

                if did_scatter == 0:
                    active = 0
                else:
                    throughput *= attenuation
                    ray_origin = hit_record.point
                    ray_direction = scattered_direction

    return color


@ti.func
def render_sample_impl(
    pixel_x: ti.i32,
    pixel_y: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
) -> vec3:
    """Trace one jittered camera ray through a pixel.

    Row 0 is the top of the image, so v is flipped to make +Y point up in
    world space.

    Args:
        pixel_x: Pixel column (0 = left).
        pixel_y: Pixel row (0 = top).
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum path length.

    Returns:
        The radiance (RGB) of this sample.
    """
    stream = pixel_y * width + pixel_x
    u = (ti.cast(pixel_x, ti.f64) + random_f64(stream)) / ti.cast(width - 1, ti.f64)
    v = (ti.cast(height, ti.f64) - (ti.cast(pixel_y, ti.f64) + random_f64(stream))) / ti.cast(
        height - 1, ti.f64
    )
    ray = get_ray(u, v)
    return ray_color(ray.origin, ray.direction, max_depth, stream)


# =============================================================================
# Rendering Kernels
# =============================================================================


@ti.kernel
def _render_one_spp(width: ti.i32, height: ti.i32, max_depth: ti.i32):
    """Trace one sample per pixel and add it to the colour sums."""
    for x, y in ti.ndrange(width, height):
        color = render_sample_impl(x, y, width, height, max_depth)

        # Check for NaN/Inf and replace with zero
        for c in ti.static(range(3)):
            if tm.isnan(color[c]) or tm.isinf(color[c]):
                color[c] = 0.0

        _color_sum[x, y] += ti.cast(color, ti.f32)


@ti.kernel
def _resolve(width: ti.i32, height: ti.i32, num_samples: ti.i32):
    """Average, gamma-correct and quantize the colour sums into _pixels."""
    for x, y in ti.ndrange(width, height):
        average = ti.cast(_color_sum[x, y], ti.f64) / ti.cast(num_samples, ti.f64)
        for c in ti.static(range(3)):
            # Gamma 2: the square root of linear light
            value = tm.clamp(ti.sqrt(tm.max(average[c], 0.0)), 0.0, MAX_CHANNEL_VALUE)
            _pixels[y, x, c] = ti.cast(256.0 * value, ti.u8)


@ti.kernel
def _render_single_pixel(
    pixel_x: ti.i32,
    pixel_y: ti.i32,
    width: ti.i32,
    height: ti.i32,
    max_depth: ti.i32,
):
    # Single-iteration outer loop keeps the path loop serial
    for i in range(1):
        _trace_result[None] = render_sample_impl(pixel_x, pixel_y, width, height, max_depth)


@ti.kernel
def _trace_single_ray(origin: vec3, direction: vec3, max_depth: ti.i32, stream: ti.i32):
    for i in range(1):
        _trace_result[None] = ray_color(origin, direction, max_depth, stream)


# =============================================================================
# Public Rendering API
# =============================================================================


def _result_tuple() -> tuple[float, float, float]:
    color = _trace_result[None]
    return (float(color[0]), float(color[1]), float(color[2]))


def trace_ray(
    origin: tuple[float, float, float],
    direction: tuple[float, float, float],
    depth: int = MAX_DEPTH,
    stream: int = 0,
) -> tuple[float, float, float]:
    """Trace a single ray through the current scene.

    This is a Python-callable function for testing and inspection. It does
    not need a render target.

    Args:
        origin: The starting point of the ray.
        direction: The direction of the ray (any non-zero length).
        depth: Maximum number of intersection queries. 0 returns black.
        stream: The random stream to draw from.

    Returns:
        Tuple of (R, G, B) linear radiance.

    Raises:
        ValueError: If the stream index is outside [0, MAX_STREAMS).
    """
    if not 0 <= stream < MAX_STREAMS:
        raise ValueError(f"Random stream {stream} out of range [0, {MAX_STREAMS})")
    _trace_single_ray(vec3(*origin), vec3(*direction), depth, stream)
    return _result_tuple()


def render_sample(
    pixel_x: int,
    pixel_y: int,
    max_depth: int = MAX_DEPTH,
) -> tuple[float, float, float]:
    """Render a single sample for a specific pixel.

    Use render_image() for production rendering, which processes all pixels
    in parallel.

    Args:
        pixel_x: Pixel column (0 = left).
        pixel_y: Pixel row (0 = top).
        max_depth: Maximum path length.

    Returns:
        Tuple of (R, G, B) linear radiance.

    Raises:
        RuntimeError: If render target has not been set up.
        ValueError: If the pixel lies outside the render target.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    if not (0 <= pixel_x < width and 0 <= pixel_y < height):
        raise ValueError(
            f"Pixel ({pixel_x}, {pixel_y}) outside the {width}x{height} render target"
        )
    _render_single_pixel(pixel_x, pixel_y, width, height, max_depth)
    return _result_tuple()


def render_image(num_samples: int = 1, max_depth: int = MAX_DEPTH) -> None:
    """Accumulate samples for every pixel.

    Can be called multiple times to add more samples; call resolve_pixels()
    afterwards to refresh the 8-bit image.

    Args:
        num_samples: Number of samples to render per pixel.
        max_depth: Maximum path length.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()

    for _ in range(num_samples):
        _render_one_spp(width, height, max_depth)
        _samples_rendered[None] += 1


def get_total_samples() -> int:
    """Get the number of samples accumulated per pixel.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()
    return int(_samples_rendered[None])


def resolve_pixels() -> None:
    """Convert the accumulated samples into 8-bit RGB.

    Each channel is averaged over the samples, square-rooted, clamped to
    [0, 0.999], multiplied by 256 and truncated.

    Raises:
        RuntimeError: If the render target is not set up or holds no samples.
    """
    _check_render_target_initialized()

    num_samples = get_total_samples()
    if num_samples == 0:
        raise RuntimeError("No samples rendered yet. Call render_image() first.")

    width, height = get_image_dimensions()
    _resolve(width, height, num_samples)


def get_pixels_numpy() -> np.ndarray:
    """Get the resolved image as a NumPy array.

    Returns:
        uint8 array of shape (height, width, 3), top row first.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    _check_render_target_initialized()

    width, height = get_image_dimensions()
    full_image = _pixels.to_numpy()
    return np.ascontiguousarray(full_image[:height, :width, :])
