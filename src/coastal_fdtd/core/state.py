"""Host-side grid state: elevation and wave height fields."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from .grid import SimulationParameters, WaveGrid

SEA_FLOOR_ELEVATION = -100.0
LAND_ELEVATION = 100.0
SOURCE_AMPLITUDE = 10.0


@dataclass
class GridState:
    """The four fields of a simulation, as float32 (height, width) arrays.

    Attributes:
        elevation: Terrain height, > 0 is land. Stored as a read-only copy.
        current: Wave height at step t
        previous: Wave height at step t-1
        next: Scratch for step t+1
    """

    elevation: NDArray[np.float32]
    current: NDArray[np.float32]
    previous: NDArray[np.float32]
    next: NDArray[np.float32]

    def __post_init__(self):
        shape = self.elevation.shape
        if len(shape) != 2:
            raise ValueError(f"Fields must be 2D, got shape {shape}")
        for name in ("current", "previous", "next"):
            if getattr(self, name).shape != shape:
                raise ValueError(
                    f"{name} shape {getattr(self, name).shape} doesn't match "
                    f"elevation shape {shape}"
                )
        self.elevation = np.array(self.elevation, dtype=np.float32)
        self.elevation.flags.writeable = False

    @property
    def grid(self) -> WaveGrid:
        height, width = self.elevation.shape
        return WaveGrid(width=width, height=height)

    @property
    def land_mask(self) -> NDArray[np.bool_]:
        """True where elevation > 0."""
        return self.elevation > 0

    @classmethod
    def from_arrays(
        cls,
        elevation: NDArray,
        current: NDArray,
        previous: NDArray | None = None,
    ) -> GridState:
        """Build a state from explicit host arrays.

        Arrays are copied and cast to float32. If previous is omitted the
        field starts at rest (previous equals current).

        Raises:
            ValueError: If shapes differ or arrays are not 2D
        """
        elevation = np.array(elevation, dtype=np.float32)
        current = np.array(current, dtype=np.float32)
        previous = current.copy() if previous is None else np.array(previous, dtype=np.float32)
        return cls(
            elevation=elevation,
            current=current,
            previous=previous,
            next=np.zeros_like(current),
        )


def initialize_grid(params: SimulationParameters) -> GridState:
    """Seed the fields from the source and land circles of params.

    Cells inside any land circle get elevation 100, all others -100.
    Cells inside any source circle start with wave height 10 in both
    current and previous, all others 0. The next field is zero.
    """
    shape = params.shape

    elevation = np.full(shape, SEA_FLOOR_ELEVATION, dtype=np.float32)
    for region in params.land:
        elevation[region.mask(*shape)] = LAND_ELEVATION

    current = np.zeros(shape, dtype=np.float32)
    for region in params.source:
        current[region.mask(*shape)] = SOURCE_AMPLITUDE

    return GridState(
        elevation=elevation,
        current=current,
        previous=current.copy(),
        next=np.zeros(shape, dtype=np.float32),
    )
