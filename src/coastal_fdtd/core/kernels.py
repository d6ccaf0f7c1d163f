"""Wave update rule and the host (NumPy) executor.

Physics:
    ∂²u/∂t² = c²∇²u

discretized with second-order central differences in time and a 5-point
stencil in space:

    u[t+1] = 2u[t] - u[t-1] + k (u_up + u_down + u_left + u_right - 4u[t])

with k = (c·dt/dx)². Stability: k ≤ 0.5 (CFL condition for 2D).

Cell rules, in order of precedence:
    1. Land (elevation > 0): wave height frozen, next = current
    2. Outer boundary: absorbed, next = 0
    3. Interior water: stencil update

The update reads only current, previous and elevation and writes only
next, so every cell can be evaluated independently within a step.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

from .errors import ResourceError


def update_cell(
    i: int,
    j: int,
    current: NDArray[np.float32],
    previous: NDArray[np.float32],
    elevation: NDArray[np.float32],
    width: int,
    height: int,
    dt_dx2: float,
) -> np.float32 | None:
    """Evaluate the update rule for one cell.

    Args:
        i: Row index
        j: Column index
        current: Flat row-major wave height at step t
        previous: Flat row-major wave height at step t-1
        elevation: Flat row-major elevation
        width: Grid columns
        height: Grid rows
        dt_dx2: Stability coefficient (c*dt/dx)^2

    Returns:
        The value of next at (i, j), or None if (i, j) is off the grid.
    """
    if i < 0 or i >= height or j < 0 or j >= width:
        return None

    idx = i * width + j

    if elevation[idx] > 0:
        return current[idx]
    if i == 0 or i == height - 1 or j == 0 or j == width - 1:
        return np.float32(0.0)

    k = np.float32(dt_dx2)
    c = current[idx]
    return np.float32(2.0) * c - previous[idx] + k * (
        current[idx - width]
        + current[idx + width]
        + current[idx - 1]
        + current[idx + 1]
        - np.float32(4.0) * c
    )


def wave_update(
    current: NDArray[np.float32],
    previous: NDArray[np.float32],
    next_: NDArray[np.float32],
    elevation: NDArray[np.float32],
    dt_dx2: float,
) -> None:
    """Apply the update rule to every cell of a (height, width) grid.

    Results are written into next_ in place; no other array is modified.

    Raises:
        ValueError: If next_ shares memory with current or previous
    """
    if np.may_share_memory(next_, current) or np.may_share_memory(next_, previous):
        raise ValueError("next_ must not alias current or previous")

    c = current
    k = np.float32(dt_dx2)

    # Absorbing edges, then interior stencil
    next_.fill(0.0)
    next_[1:-1, 1:-1] = 2 * c[1:-1, 1:-1] - previous[1:-1, 1:-1] + k * (
        c[:-2, 1:-1]
        + c[2:, 1:-1]
        + c[1:-1, :-2]
        + c[1:-1, 2:]
        - 4 * c[1:-1, 1:-1]
    )

    # Land overrides both
    np.copyto(next_, c, where=elevation > 0)


class NumpyExecutor:
    """Host executor running the update rule with vectorized NumPy.

    Handles are plain float32 arrays; upload and readback are copies so the
    caller's arrays are never aliased by the solver.
    """

    name = "python"
    device = "cpu"

    def build(self) -> None:
        """Nothing to compile on the host."""

    def upload(self, array: NDArray) -> NDArray[np.float32]:
        try:
            return np.array(array, dtype=np.float32, order="C", copy=True)
        except MemoryError as e:
            raise ResourceError(
                f"Failed to allocate field of shape {np.shape(array)}: {e}",
                code="ALLOCATION_FAILED",
            ) from e

    def readback(self, handle: NDArray[np.float32]) -> NDArray[np.float32]:
        return handle.copy()

    def dispatch(self, current, previous, next_, elevation, dt_dx2: float) -> None:
        wave_update(current, previous, next_, elevation, dt_dx2)

    def synchronize(self) -> None:
        """NumPy dispatch is synchronous."""
