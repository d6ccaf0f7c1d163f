"""
Coastal FDTD - explicit 2D wave simulation over water and land.

Main exports:
- WaveSolver: Time stepper with three-buffer role rotation
- SimulationParameters: Grid size, timestep and seed regions
- CircleRegion: Circular source or land region
- GridState, initialize_grid: Host-side initial fields
- update_cell: Per-cell update rule
- NumpyExecutor, TorchExecutor: Host and GPU executors
"""

from coastal_fdtd.core.errors import (
    ConfigurationError,
    KernelBuildError,
    ResourceError,
    SimulationError,
)
from coastal_fdtd.core.grid import CircleRegion, SimulationParameters, WaveGrid
from coastal_fdtd.core.kernels import NumpyExecutor, update_cell, wave_update
from coastal_fdtd.core.solver import RunResult, SolverState, WaveSolver
from coastal_fdtd.core.solver_gpu import TorchExecutor, get_gpu_info, has_gpu_support
from coastal_fdtd.core.state import GridState, initialize_grid

__version__ = "0.1.0"

__all__ = [
    # Solver
    "WaveSolver",
    "SolverState",
    "RunResult",
    # Configuration and state
    "SimulationParameters",
    "CircleRegion",
    "WaveGrid",
    "GridState",
    "initialize_grid",
    # Update rule and executors
    "update_cell",
    "wave_update",
    "NumpyExecutor",
    "TorchExecutor",
    "has_gpu_support",
    "get_gpu_info",
    # Errors
    "SimulationError",
    "ConfigurationError",
    "KernelBuildError",
    "ResourceError",
]
