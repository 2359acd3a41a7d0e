"""Progressive renderer and the buffer-filling render entry point.

This module provides a convenient wrapper around the core integrator that supports:
- Sample passes accumulated into the render target
- Progress callbacks and a generator interface for UI updates
- Resolving the accumulated samples into 8-bit RGB
- Filling a caller-owned byte buffer with the finished image

``render()`` is the one-call entry point used by the command line program: it
builds the default scene for the buffer's dimensions, renders it and writes
``width * height * 3`` bytes, row-major, top row first, RGB order.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.core.progressive import RenderSettings, render
    >>>
    >>> pixels = bytearray(800 * 600 * 3)
    >>> render(pixels, (800, 600), RenderSettings(seed=1))
"""

import dataclasses
import logging
from collections.abc import Callable, Generator
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from pathtracer.camera.pinhole import setup_camera
from pathtracer.core.integrator import (
    MAX_DEPTH,
    MAX_IMAGE_HEIGHT,
    MAX_IMAGE_WIDTH,
    clear_render_target,
    get_pixels_numpy,
    get_total_samples,
    render_image,
    resolve_pixels,
    setup_render_target,
)
from pathtracer.core.sampler import seed_streams
from pathtracer.scene.default_scene import create_default_scene

logger = logging.getLogger(__name__)

# Type alias for progress callback
# Callback receives (current_samples, total_target_samples)
ProgressCallback = Callable[[int, int], None]


@dataclass
class RenderSettings:
    """Parameters of a render.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Number of jittered samples averaged per pixel.
        max_depth: Maximum number of intersection queries along a path.
        seed: Seed for the random streams. None seeds non-deterministically.
        viewport_height: Height of the camera viewport in world units.
        focal_length: Distance from the camera to the viewport.
    """

    width: int = 800
    height: int = 600
    samples_per_pixel: int = 6
    max_depth: int = MAX_DEPTH
    seed: int | None = None
    viewport_height: float = 2.0
    focal_length: float = 1.0

    @property
    def aspect_ratio(self) -> float:
        """Image width divided by image height."""
        return self.width / self.height

    def validate(self) -> None:
        """Check the settings.

        Raises:
            ValueError: If any setting is out of range.
        """
        if self.width < 2 or self.height < 2:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) must be at least 2x2"
            )
        if self.width > MAX_IMAGE_WIDTH or self.height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Image dimensions ({self.width}x{self.height}) exceed maximum supported "
                f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
            )
        if self.samples_per_pixel < 1:
            raise ValueError(
                f"samples_per_pixel must be at least 1, got {self.samples_per_pixel}"
            )
        if self.max_depth < 0:
            raise ValueError(f"max_depth must not be negative, got {self.max_depth}")
        if self.viewport_height <= 0.0:
            raise ValueError(f"viewport_height must be positive, got {self.viewport_height}")
        if self.focal_length <= 0.0:
            raise ValueError(f"focal_length must be positive, got {self.focal_length}")


class ProgressiveRenderer:
    """A renderer that accumulates samples pass by pass.

    The renderer maintains its own state for width/height and delegates
    to the global integrator buffers (which are Taichi fields). The scene
    and camera must already be set up.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        max_depth: Maximum path length used for every pass.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        max_depth: int = MAX_DEPTH,
        seed: int | None = None,
    ) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).
            max_depth: Maximum path length.
            seed: Seed for the random streams. None seeds non-deterministically.

        Raises:
            ValueError: If dimensions are outside the supported range.
        """
        self._width = width
        self._height = height
        self.max_depth = max_depth
        setup_render_target(width, height)
        seed_streams(seed)
        logger.debug("render target %dx%d, max depth %d", width, height, max_depth)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def sample_count(self) -> int:
        """Get the current number of accumulated samples per pixel."""
        return get_total_samples()

    def reset(self) -> None:
        """Discard the accumulated samples, keeping the dimensions."""
        clear_render_target()

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Render samples progressively with optional progress callback.

        Accumulates the specified number of samples into the existing buffer.
        Can be called multiple times to continue refining the image.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each callback.
            callback: Optional callback function called after each batch.
                Receives (current_total_samples, target_total_samples).

        Example:
            >>> def progress(current, target):
            ...     print(f"Progress: {current}/{target} samples")
            >>> renderer.render(6, callback=progress)
        """
        for current, target in self.render_progressive(num_samples, batch_size):
            if callback is not None:
                callback(current, target)

    def render_progressive(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Render samples progressively, yielding progress after each batch.

        Args:
            num_samples: Total number of samples to add.
            batch_size: Number of samples to render before each yield.

        Yields:
            Tuple of (current_total_samples, target_total_samples).
        """
        if num_samples <= 0:
            return

        target_samples = self.sample_count + num_samples

        remaining = num_samples
        while remaining > 0:
            batch = min(max(batch_size, 1), remaining)
            render_image(batch, self.max_depth)
            remaining -= batch
            yield (self.sample_count, target_samples)

    def get_pixels(self) -> npt.NDArray[np.uint8]:
        """Resolve the accumulated samples into 8-bit RGB.

        Returns:
            uint8 array of shape (height, width, 3), top row first.

        Raises:
            RuntimeError: If no samples have been rendered.
        """
        resolve_pixels()
        return get_pixels_numpy()

    def copy_into(self, buffer: bytearray | memoryview) -> None:
        """Resolve the image and write it into a byte buffer.

        Args:
            buffer: Writable buffer of exactly width * height * 3 bytes.

        Raises:
            ValueError: If the buffer has the wrong length.
        """
        expected = self.width * self.height * 3
        target = np.frombuffer(buffer, dtype=np.uint8)
        if target.size != expected:
            raise ValueError(f"Pixel buffer holds {target.size} bytes, expected {expected}")
        target[:] = self.get_pixels().reshape(-1)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count})"
        )


def render(
    pixels: bytearray | memoryview,
    bounds: tuple[int, int],
    settings: RenderSettings | None = None,
    callback: ProgressCallback | None = None,
) -> None:
    """Render the default scene into a caller-owned RGB8 buffer.

    Args:
        pixels: Writable buffer of exactly width * height * 3 bytes. Every
            byte is overwritten.
        bounds: Image size as (width, height). Overrides the size in settings.
        settings: Sampling, depth, seed and camera parameters. Defaults to
            RenderSettings().
        callback: Optional progress callback, called after every sample pass
            with (current_samples, samples_per_pixel).

    Raises:
        ValueError: If the buffer length does not match the bounds or the
            settings are invalid.
    """
    width, height = bounds
    if len(pixels) != width * height * 3:
        raise ValueError(
            f"Pixel buffer holds {len(pixels)} bytes, expected {width * height * 3} "
            f"for {width}x{height}"
        )

    settings = dataclasses.replace(settings or RenderSettings(), width=width, height=height)
    settings.validate()

    _scene, camera = create_default_scene(
        settings.aspect_ratio,
        viewport_height=settings.viewport_height,
        focal_length=settings.focal_length,
    )
    setup_camera(camera)

    renderer = ProgressiveRenderer(
        width, height, max_depth=settings.max_depth, seed=settings.seed
    )
    logger.info(
        "rendering %dx%d at %d samples per pixel",
        width,
        height,
        settings.samples_per_pixel,
    )
    renderer.render(settings.samples_per_pixel, callback=callback)
    renderer.copy_into(pixels)
    logger.debug("render finished: %r", renderer)
