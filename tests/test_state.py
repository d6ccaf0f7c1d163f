"""Tests for host-side grid state initialization."""

import numpy as np
import pytest

from coastal_fdtd import CircleRegion, GridState, SimulationParameters, initialize_grid
from coastal_fdtd.core.state import LAND_ELEVATION, SEA_FLOOR_ELEVATION, SOURCE_AMPLITUDE


@pytest.fixture
def seeded_params():
    return SimulationParameters(
        width=20,
        height=16,
        timesteps=1,
        source=(CircleRegion(center=(8, 10), radius=2),),
        land=(CircleRegion(center=(3, 3), radius=2),),
    )


class TestInitializeGrid:
    def test_shapes_and_dtype(self, seeded_params):
        state = initialize_grid(seeded_params)

        for field in (state.elevation, state.current, state.previous, state.next):
            assert field.shape == (16, 20)
            assert field.dtype == np.float32

    def test_elevation_values(self, seeded_params):
        state = initialize_grid(seeded_params)
        land = seeded_params.land[0].mask(16, 20)

        assert np.all(state.elevation[land] == LAND_ELEVATION)
        assert np.all(state.elevation[~land] == SEA_FLOOR_ELEVATION)
        assert state.elevation[3, 5] == 100.0  # on the circle boundary
        assert state.elevation[3, 6] == -100.0

    def test_source_values(self, seeded_params):
        state = initialize_grid(seeded_params)
        source = seeded_params.source[0].mask(16, 20)

        assert source.sum() == 13
        assert np.all(state.current[source] == SOURCE_AMPLITUDE)
        assert np.all(state.current[~source] == 0.0)

    def test_previous_equals_current(self, seeded_params):
        """The wave starts at rest."""
        state = initialize_grid(seeded_params)

        np.testing.assert_array_equal(state.previous, state.current)
        assert state.previous is not state.current

    def test_next_is_zero(self, seeded_params):
        state = initialize_grid(seeded_params)
        assert not state.next.any()

    def test_land_mask(self, seeded_params):
        state = initialize_grid(seeded_params)
        np.testing.assert_array_equal(state.land_mask, state.elevation > 0)

    def test_multiple_regions(self):
        params = SimulationParameters(
            width=30,
            height=30,
            timesteps=1,
            source=(
                CircleRegion(center=(5, 5), radius=1),
                CircleRegion(center=(25, 25), radius=1),
            ),
            land=(
                CircleRegion(center=(5, 25), radius=1),
                CircleRegion(center=(25, 5), radius=1),
            ),
        )
        state = initialize_grid(params)

        assert (state.current == SOURCE_AMPLITUDE).sum() == 10
        assert (state.elevation > 0).sum() == 10

    def test_default_scenario(self):
        params = SimulationParameters()
        state = initialize_grid(params)

        assert state.current[256, 256] == 10.0
        assert state.current[256, 258] == 10.0
        assert state.current[256, 259] == 0.0
        assert state.elevation[400, 400] == 100.0
        assert state.elevation[400, 450] == 100.0
        assert state.elevation[400, 451] == -100.0

    def test_elevation_is_read_only(self, seeded_params):
        state = initialize_grid(seeded_params)
        with pytest.raises(ValueError):
            state.elevation[0, 0] = 1.0

    def test_direct_construction_leaves_caller_elevation_writable(self):
        elevation = np.full((3, 3), -1.0, dtype=np.float32)
        fields = [np.zeros((3, 3), dtype=np.float32) for _ in range(3)]
        state = GridState(elevation, *fields)

        elevation[1, 1] = 2.0

        assert elevation.flags.writeable
        assert not state.elevation.flags.writeable
        assert state.elevation[1, 1] == -1.0


class TestGridStateFromArrays:
    def test_casts_to_float32(self):
        state = GridState.from_arrays(
            elevation=np.zeros((3, 4)), current=np.ones((3, 4), dtype=np.int64)
        )
        assert state.current.dtype == np.float32
        assert state.elevation.dtype == np.float32

    def test_previous_defaults_to_current(self):
        current = np.arange(12, dtype=np.float32).reshape(3, 4)
        state = GridState.from_arrays(np.zeros((3, 4)), current)

        np.testing.assert_array_equal(state.previous, current)

    def test_copies_inputs(self):
        current = np.zeros((3, 3), dtype=np.float32)
        state = GridState.from_arrays(np.zeros((3, 3)), current)
        current[1, 1] = 5.0

        assert state.current[1, 1] == 0.0

    def test_shape_mismatch_raises(self):
        with pytest.raises(ValueError, match="shape"):
            GridState.from_arrays(np.zeros((3, 3)), np.zeros((3, 4)))

    def test_non_2d_raises(self):
        with pytest.raises(ValueError, match="2D"):
            GridState.from_arrays(np.zeros(9), np.zeros(9))
