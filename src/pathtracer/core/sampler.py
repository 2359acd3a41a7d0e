"""Seedable random number streams for Monte Carlo sampling.

Every pixel of the render target owns an independent xorshift32 stream stored
in a Taichi field. A kernel iteration only ever touches the stream of its own
pixel, so the sequence of draws a pixel sees depends on the seed alone and not
on how Taichi schedules the parallel loop. Renders are therefore bit-identical
for a given seed.

Streams are seeded on the host from ``numpy.random.default_rng(seed)``. A seed
of None draws fresh entropy from the operating system.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu, default_fp=ti.f64)
    >>> from pathtracer.core.sampler import random_f64, seed_streams
    >>> seed_streams(7)
    >>> @ti.kernel
    ... def draw() -> ti.f64:
    ...     return random_f64(0)
"""

import numpy as np
import taichi as ti

from pathtracer.core.ray import length_squared, normalize, vec3

# One stream per pixel of the largest supported render target
MAX_STREAMS = 2048 * 2048

# 2^-32, maps a 32-bit state onto [0, 1)
_U32_TO_UNIT = 1.0 / 4294967296.0

_rng_states = ti.field(dtype=ti.u32, shape=MAX_STREAMS)


def seed_streams(seed: int | None = None) -> None:
    """Seed every random stream.

    Args:
        seed: Seed for the host-side generator. None seeds non-deterministically.
    """
    rng = np.random.default_rng(seed)
    # xorshift never leaves the all-zero state, so start from [1, 2^32)
    states = rng.integers(1, 2**32, size=MAX_STREAMS, dtype=np.uint32)
    _rng_states.from_numpy(states)


@ti.func
def next_u32(stream: ti.i32) -> ti.u32:
    """Advance a stream by one xorshift32 step and return the new state."""
    x = _rng_states[stream]
    x ^= x << ti.u32(13)
    x ^= x >> ti.u32(17)
    x ^= x << ti.u32(5)
    _rng_states[stream] = x
    return x


@ti.func
def random_f64(stream: ti.i32) -> ti.f64:
    """Draw a uniform random number on [0, 1) from a stream."""
    return ti.cast(next_u32(stream), ti.f64) * _U32_TO_UNIT


@ti.func
def random_range(stream: ti.i32, lo: ti.f64, hi: ti.f64) -> ti.f64:
    """Draw a uniform random number on [lo, hi) from a stream."""
    return lo + (hi - lo) * random_f64(stream)


@ti.func
def random_in_unit_sphere(stream: ti.i32) -> vec3:
    """Generate a random point inside the unit sphere.

    Rejection samples points in the cube [-1, 1]^3 until one falls strictly
    inside the sphere.

    Returns:
        A random point with squared length < 1.
    """
    p = vec3(0.0, 0.0, 0.0)
    found = False
    # Acceptance rate is pi/6 per try; 100 rejections in a row never happens
    for _ in range(100):
        if not found:
            p = vec3(
                random_range(stream, -1.0, 1.0),
                random_range(stream, -1.0, 1.0),
                random_range(stream, -1.0, 1.0),
            )
            if length_squared(p) < 1.0:
                found = True
    return p


@ti.func
def random_unit_vector(stream: ti.i32) -> vec3:
    """Generate a random unit vector (normalized random_in_unit_sphere)."""
    return normalize(random_in_unit_sphere(stream))
