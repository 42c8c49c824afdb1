"""
Shared fixtures: Taichi runs on the CPU backend for the whole session.
"""

import numpy as np
import pytest
import taichi as ti

import pyfastscan as ps


@pytest.fixture(scope="session", autouse=True)
def taichi_env():
    if not ps.constants.INITIALISED:
        ps.environment.initialise(arch=ti.cpu)
    yield


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture(autouse=True)
def no_leaked_buffers():
    """Every primitive must release its transient buffers."""
    yield
    assert ps.pool.pool_stats()["in_use"] == 0
