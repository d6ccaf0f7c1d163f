"""2D wave equation time stepper.

This module drives explicit time integration of the linear wave equation
over a grid of water and land cells. Each step evaluates the update rule
(see coastal_fdtd.core.kernels) for every cell into a scratch buffer, then
rotates buffer roles:

    previous <- current <- next <- previous

Three buffers are required because the stencil reads two time levels
(t and t-1) while writing t+1. Roles are slots in a ring of three buffer
handles indexed by an offset, so rotation never copies field data.

Example:
    >>> from coastal_fdtd import SimulationParameters, WaveSolver
    >>> params = SimulationParameters(width=128, height=128, timesteps=100)
    >>> with WaveSolver(params) as solver:
    ...     result = solver.run()
    >>> result.wave_height.shape
    (128, 128)

Backend Selection:
    - "python": Vectorized NumPy on the host (always available)
    - "gpu": PyTorch on a CUDA/MPS device (CPU device if none)
    - "auto": "gpu" when a GPU is available, else "python"
"""

from __future__ import annotations

import time
import warnings
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Literal

import numpy as np
from numpy.typing import NDArray

from .errors import ConfigurationError
from .grid import SimulationParameters
from .kernels import NumpyExecutor
from .solver_gpu import TorchExecutor, has_gpu_support
from .state import GridState, initialize_grid

# Ring slot offsets relative to the rotation offset
_PREVIOUS, _CURRENT, _NEXT = 0, 1, 2

BackendName = Literal["auto", "gpu", "python"]


class SolverState(Enum):
    """Lifecycle of a WaveSolver."""

    IDLE = "idle"
    STEPPING = "stepping"
    DONE = "done"


@dataclass
class RunResult:
    """Outcome of WaveSolver.run().

    Attributes:
        wave_height: Final field in the current role, shape (height, width)
        steps: Number of steps executed by this run
        elapsed: Wall-clock seconds for the time-stepping loop
        backend: Executor backend name
        device: Device the loop ran on
        num_cells: Cells per step
    """

    wave_height: NDArray[np.float32]
    steps: int
    elapsed: float
    backend: str
    device: str
    num_cells: int

    @property
    def throughput_mcells(self) -> float:
        """Cell updates per second, in millions."""
        if self.elapsed <= 0:
            return 0.0
        return self.steps * self.num_cells / self.elapsed / 1e6


def create_executor(backend: BackendName = "auto", device: str = "auto"):
    """Create the executor for a backend name.

    Raises:
        ConfigurationError: If the backend is unknown or its device is
            unavailable
    """
    if backend == "auto":
        backend = "gpu" if has_gpu_support() else "python"

    if backend == "python":
        if device not in ("auto", "cpu"):
            raise ConfigurationError(
                f"Python backend runs on the host only, got device '{device}'",
                code="DEVICE_UNAVAILABLE",
            )
        return NumpyExecutor()
    if backend == "gpu":
        executor = TorchExecutor(device=device)
        if not executor.using_gpu:
            warnings.warn(
                "No GPU available, GPU backend running on CPU. "
                "This provides no acceleration benefit.",
                UserWarning,
                stacklevel=3,
            )
        return executor

    raise ConfigurationError(
        f"Unknown backend '{backend}'. Use one of: auto, gpu, python",
        code="UNKNOWN_BACKEND",
    )


class WaveSolver:
    """Explicit time stepper for the 2D wave equation with land cells.

    Owns the elevation field and a ring of three wave height buffers on the
    executor's device. Buffers are uploaded once at construction and only
    the requested fields are read back.

    Args:
        params: Run configuration
        state: Initial fields. Default: initialize_grid(params).
        backend: "auto", "gpu" or "python"
        device: Device for the GPU backend ("auto", "cuda", "mps", "cpu")
        executor: Prebuilt executor, overrides backend and device

    Raises:
        ValueError: If state shape doesn't match params
        ConfigurationError: If no usable compute target exists
        KernelBuildError: If the update kernel fails to build
        ResourceError: If a field buffer cannot be allocated

    Example:
        >>> solver = WaveSolver(params, backend="python")
        >>> solver.step()
        >>> solver.step_count
        1
        >>> solver.get_field("previous")  # initial condition
    """

    def __init__(
        self,
        params: SimulationParameters,
        state: GridState | None = None,
        backend: BackendName = "auto",
        device: str = "auto",
        executor=None,
    ):
        if state is None:
            state = initialize_grid(params)
        elif state.elevation.shape != params.shape:
            raise ValueError(
                f"State shape {state.elevation.shape} doesn't match grid shape {params.shape}"
            )

        self.params = params
        self._initial_state = state
        self._executor = executor if executor is not None else create_executor(backend, device)
        self._executor.build()

        self._elevation = None
        self._ring: list = []
        self._offset = 0
        self._upload(state)

        self._state = SolverState.IDLE
        self._step_count = 0

    def _upload(self, state: GridState) -> None:
        """Allocate device buffers and copy the initial fields."""
        upload = self._executor.upload
        self._elevation = upload(state.elevation)
        # Ring order matches _PREVIOUS, _CURRENT, _NEXT at offset 0
        self._ring = [upload(state.previous), upload(state.current), upload(state.next)]
        self._offset = 0

    def _slot(self, role: int):
        return self._ring[(self._offset + role) % 3]

    @property
    def state(self) -> SolverState:
        """Current lifecycle state."""
        return self._state

    @property
    def step_count(self) -> int:
        """Number of timesteps executed."""
        return self._step_count

    @property
    def backend(self) -> str:
        """Executor backend name ("python" or "gpu")."""
        return self._executor.name

    @property
    def device(self) -> str:
        """Device the buffers live on."""
        return self._executor.device

    @property
    def grid(self):
        return self.params.grid

    def step(self) -> None:
        """Advance the simulation by one timestep.

        Raises:
            RuntimeError: If the run has finished or the solver was closed
        """
        if self._state is SolverState.DONE:
            raise RuntimeError("Simulation is done. Call reset() to run again.")
        if not self._ring:
            raise RuntimeError("Solver buffers have been released")
        self._state = SolverState.STEPPING

        self._executor.dispatch(
            self._slot(_CURRENT),
            self._slot(_PREVIOUS),
            self._slot(_NEXT),
            self._elevation,
            self.params.dt_dx2,
        )

        # Old current becomes previous, next becomes current, previous is scratch
        self._offset = (self._offset + 1) % 3
        self._step_count += 1

    def run(
        self,
        timesteps: int | None = None,
        callback: Callable[[int], None] | None = None,
        progress: bool = False,
    ) -> RunResult:
        """Run the time-stepping loop and read back the final field.

        Args:
            timesteps: Number of steps (default: params.timesteps)
            callback: Function called after each step with callback(step),
                where step counts from 0 within this run
            progress: If True, show a tqdm progress bar

        Returns:
            RunResult with the final wave height and timing
        """
        n_steps = self.params.timesteps if timesteps is None else timesteps
        if n_steps < 0:
            raise ValueError(f"timesteps must be non-negative, got {n_steps}")

        if progress:
            from tqdm import tqdm

            iterator = tqdm(range(n_steps), desc="Wave simulation")
        else:
            iterator = range(n_steps)

        # Barrier before timing so upload cost isn't measured
        self._executor.synchronize()
        start_time = time.perf_counter()

        for step in iterator:
            self.step()
            if callback:
                callback(step)

        self._executor.synchronize()
        elapsed = time.perf_counter() - start_time

        self._state = SolverState.DONE

        return RunResult(
            wave_height=self.get_wave_height(),
            steps=n_steps,
            elapsed=elapsed,
            backend=self.backend,
            device=self.device,
            num_cells=self.params.grid.num_cells,
        )

    def get_wave_height(self) -> NDArray[np.float32]:
        """Read back the field in the current role."""
        return self.get_field("current")

    def get_field(self, role: str) -> NDArray[np.float32]:
        """Read back a field by role.

        Args:
            role: "current", "previous" or "elevation"

        Raises:
            KeyError: If role is not one of the above
        """
        if not self._ring:
            raise RuntimeError("Solver buffers have been released")
        if role == "current":
            handle = self._slot(_CURRENT)
        elif role == "previous":
            handle = self._slot(_PREVIOUS)
        elif role == "elevation":
            handle = self._elevation
        else:
            raise KeyError(f"Unknown field role '{role}'")
        return self._executor.readback(handle)

    def max_amplitude(self) -> float:
        """Largest absolute wave height in the current field."""
        return float(np.max(np.abs(self.get_wave_height())))

    def reset(self) -> None:
        """Re-upload the initial fields and return to IDLE."""
        self._upload(self._initial_state)
        self._state = SolverState.IDLE
        self._step_count = 0

    def close(self) -> None:
        """Release the device buffers."""
        self._ring = []
        self._elevation = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return (
            f"WaveSolver(shape={self.params.shape}, backend={self.backend!r}, "
            f"device={self.device!r}, state={self._state.value}, steps={self._step_count})"
        )
