"""Pytest configuration for BSDF tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.

Taichi binds ``float`` annotations to the default precision when a struct or
field is created, so project modules must be imported inside the tests, after
ti.init() has run.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Double precision keeps the eval / pdf / weight identities well inside the
    tolerances the tests use. Using session scope prevents multiple ti.init()
    calls which can cause segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu, random_seed=42, default_fp=ti.f64)
    yield


@pytest.fixture(autouse=True)
def reset_bsdf_state():
    """Restore the default configuration and forget the active material.

    This ensures tests are isolated from each other.
    """
    # Import here so Taichi is initialized first
    from src.bsdf.core import config
    from src.bsdf.core.evaluator import clear_material

    config.reset_config()
    clear_material()

    yield

    config.reset_config()
    clear_material()
