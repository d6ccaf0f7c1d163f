"""
Grid and run configuration for 2D wave simulation.

Fields are dense row-major arrays of shape (height, width). A cell at
(row, col) has linear index ``row * width + col``.

Classes:
    CircleRegion: Circular seed region (source or land)
    WaveGrid: Grid dimensions and index helpers
    SimulationParameters: Immutable run configuration

Example:
    >>> from coastal_fdtd import SimulationParameters
    >>> params = SimulationParameters(width=128, height=128, timesteps=200)
    >>> params.dt_dx2
    0.010000000000000002
    >>> params.grid.num_cells
    16384
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import NDArray

# Defaults of the reference scenario
DEFAULT_WIDTH = 512
DEFAULT_HEIGHT = 512
DEFAULT_TIMESTEPS = 2500
DEFAULT_WAVE_SPEED = 1.0
DEFAULT_DT = 0.1
DEFAULT_DX = 1.0

# Stability limit of the explicit 5-point stencil in 2D
CFL_LIMIT = 0.5


@dataclass(frozen=True)
class CircleRegion:
    """Circular region of cells.

    A cell (i, j) lies inside when ``(i - cy)**2 + (j - cx)**2 <= radius**2``.
    The boundary is inclusive.

    Args:
        center: (cy, cx) row and column of the centre
        radius: Radius in cells (non-negative)
    """

    center: tuple[int, int]
    radius: float

    def __post_init__(self):
        if self.radius < 0:
            raise ValueError(f"radius must be non-negative, got {self.radius}")

    def contains(self, i: int, j: int) -> bool:
        """Check whether cell (i, j) lies inside the circle."""
        cy, cx = self.center
        return (i - cy) ** 2 + (j - cx) ** 2 <= self.radius**2

    def mask(self, height: int, width: int) -> NDArray[np.bool_]:
        """Boolean mask of shape (height, width), True inside the circle."""
        cy, cx = self.center
        rows = np.arange(height).reshape(-1, 1)
        cols = np.arange(width).reshape(1, -1)
        return (rows - cy) ** 2 + (cols - cx) ** 2 <= self.radius**2


@dataclass(frozen=True)
class WaveGrid:
    """Rectangular grid of width x height cells.

    Args:
        width: Number of columns
        height: Number of rows
    """

    width: int
    height: int

    def __post_init__(self):
        if self.width < 1 or self.height < 1:
            raise ValueError(
                f"Grid dimensions must be positive, got {self.width}x{self.height}"
            )

    @property
    def shape(self) -> tuple[int, int]:
        """Array shape (height, width)."""
        return (self.height, self.width)

    @property
    def num_cells(self) -> int:
        """Total number of cells."""
        return self.width * self.height

    def in_bounds(self, i: int, j: int) -> bool:
        """Check whether (row, col) lies on the grid."""
        return 0 <= i < self.height and 0 <= j < self.width

    def is_edge(self, i: int, j: int) -> bool:
        """Check whether (row, col) lies on the outer boundary."""
        return i == 0 or i == self.height - 1 or j == 0 or j == self.width - 1

    def linear_index(self, i: int, j: int) -> int:
        """Row-major linear index of (row, col).

        Raises:
            IndexError: If the cell is off the grid
        """
        if not self.in_bounds(i, j):
            raise IndexError(f"Cell ({i}, {j}) outside {self.height}x{self.width} grid")
        return i * self.width + j

    def cell(self, idx: int) -> tuple[int, int]:
        """Inverse of linear_index.

        Raises:
            IndexError: If idx is outside [0, num_cells)
        """
        if not 0 <= idx < self.num_cells:
            raise IndexError(f"Linear index {idx} outside grid of {self.num_cells} cells")
        return divmod(idx, self.width)

    def edge_mask(self) -> NDArray[np.bool_]:
        """Boolean mask of the outer boundary cells."""
        mask = np.zeros(self.shape, dtype=bool)
        mask[0, :] = True
        mask[-1, :] = True
        mask[:, 0] = True
        mask[:, -1] = True
        return mask


def _default_land() -> tuple[CircleRegion, ...]:
    return (CircleRegion(center=(400, 400), radius=50),)


@dataclass(frozen=True)
class SimulationParameters:
    """Immutable configuration of a simulation run.

    Args:
        width: Grid columns
        height: Grid rows
        timesteps: Number of time steps to integrate
        wave_speed: Wave speed c
        dt: Timestep
        dx: Grid spacing
        source: Circles seeded with the initial wave height. Default: one
            circle of radius 2 at the grid centre.
        land: Circles raised above sea level. Default: one circle of
            radius 50 at (400, 400).

    Raises:
        ValueError: If a value is non-positive or non-finite, or if
            ``dt_dx2`` exceeds the CFL limit of 0.5.
    """

    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    timesteps: int = DEFAULT_TIMESTEPS
    wave_speed: float = DEFAULT_WAVE_SPEED
    dt: float = DEFAULT_DT
    dx: float = DEFAULT_DX
    source: tuple[CircleRegion, ...] | None = None
    land: tuple[CircleRegion, ...] = field(default_factory=_default_land)

    def __post_init__(self):
        if self.timesteps < 1:
            raise ValueError(f"timesteps must be positive, got {self.timesteps}")
        for name in ("wave_speed", "dt", "dx"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f"{name} must be a positive finite number, got {value}")

        # Validates dimensions
        WaveGrid(self.width, self.height)

        # Centre the default source on the actual grid
        if self.source is None:
            center = (self.height // 2, self.width // 2)
            object.__setattr__(self, "source", (CircleRegion(center=center, radius=2),))
        object.__setattr__(self, "source", tuple(self.source))
        object.__setattr__(self, "land", tuple(self.land))

        # Checked at the float32 precision the update rule runs in
        if np.float32(self.dt_dx2) > CFL_LIMIT:
            raise ValueError(
                f"Unstable configuration: (c*dt/dx)^2 = {self.dt_dx2:.4g} exceeds "
                f"CFL limit {CFL_LIMIT}. Reduce dt or wave_speed, or increase dx."
            )

    @property
    def grid(self) -> WaveGrid:
        """Grid described by width and height."""
        return WaveGrid(self.width, self.height)

    @property
    def shape(self) -> tuple[int, int]:
        """Array shape (height, width)."""
        return (self.height, self.width)

    @property
    def dt_dx2(self) -> float:
        """Stability coefficient (c*dt/dx)^2."""
        return (self.wave_speed * self.dt / self.dx) ** 2

    @property
    def courant(self) -> float:
        """Courant number c*dt/dx."""
        return self.wave_speed * self.dt / self.dx
