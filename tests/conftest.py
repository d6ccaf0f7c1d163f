"""Shared fixtures for the coastal-fdtd test suite."""

import numpy as np
import pytest

from coastal_fdtd import CircleRegion, GridState, SimulationParameters


def _make_params(width=5, height=5, timesteps=3, dt_dx2=0.25, **kwargs):
    """Parameters with the given stability coefficient (c=1, dx=1)."""
    return SimulationParameters(
        width=width,
        height=height,
        timesteps=timesteps,
        wave_speed=1.0,
        dt=float(np.sqrt(dt_dx2)),
        dx=1.0,
        **kwargs,
    )


def _impulse_state(width=5, height=5, value=10.0):
    """All-water grid at rest with a single raised centre cell."""
    elevation = np.full((height, width), -100.0, dtype=np.float32)
    current = np.zeros((height, width), dtype=np.float32)
    current[height // 2, width // 2] = value
    return GridState.from_arrays(elevation, current)


@pytest.fixture
def make_params():
    """Factory for SimulationParameters with c=1, dx=1 and a given dt_dx2."""
    return _make_params


@pytest.fixture
def make_impulse_state():
    """Factory for a centre-impulse GridState."""
    return _impulse_state


@pytest.fixture
def params_5x5():
    """5x5 grid, dt_dx2 = 0.25, three steps, no land."""
    return _make_params(land=())


@pytest.fixture
def impulse_5x5():
    """5x5 water grid at rest with 10.0 in the centre cell."""
    return _impulse_state()


@pytest.fixture
def island_params():
    """32x32 grid with an island off-centre."""
    return _make_params(
        width=32,
        height=32,
        timesteps=20,
        land=(CircleRegion(center=(22, 22), radius=4),),
    )
