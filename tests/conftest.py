"""Pytest configuration for path tracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls, which would
    invalidate the fields allocated by already imported modules.
    """
    ti.init(arch=ti.cpu, default_fp=ti.f64, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear scene data and reseed the random streams around each test."""
    # Import here to ensure Taichi is initialized
    from pathtracer.core.sampler import seed_streams
    from pathtracer.scene.intersection import clear_scene
    from pathtracer.scene.manager import reset_materials

    def _clear_all():
        clear_scene()
        reset_materials()

    _clear_all()
    seed_streams(1234)

    yield

    _clear_all()
