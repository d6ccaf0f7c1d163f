"""Core wave simulation components."""

from coastal_fdtd.core.errors import (
    ConfigurationError,
    KernelBuildError,
    ResourceError,
    SimulationError,
)
from coastal_fdtd.core.grid import CircleRegion, SimulationParameters, WaveGrid
from coastal_fdtd.core.kernels import NumpyExecutor, update_cell, wave_update
from coastal_fdtd.core.solver import RunResult, SolverState, WaveSolver, create_executor
from coastal_fdtd.core.solver_gpu import (
    TorchExecutor,
    get_gpu_info,
    has_gpu_support,
)
from coastal_fdtd.core.state import GridState, initialize_grid

__all__ = [
    "WaveSolver",
    "SolverState",
    "RunResult",
    "create_executor",
    "SimulationParameters",
    "CircleRegion",
    "WaveGrid",
    "GridState",
    "initialize_grid",
    "update_cell",
    "wave_update",
    "NumpyExecutor",
    "TorchExecutor",
    "has_gpu_support",
    "get_gpu_info",
    "SimulationError",
    "ConfigurationError",
    "KernelBuildError",
    "ResourceError",
]
