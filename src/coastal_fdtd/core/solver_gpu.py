"""GPU executor for the wave update using PyTorch.

Field buffers live on the device for the whole run. Each time step is one
dispatch of the update rule over the full (height, width) index space; the
solver rotates buffer handles between dispatches, so no data crosses the
host/device boundary except the initial upload and the final readback.

Supported devices:
    - "cuda": NVIDIA GPUs
    - "mps": Apple Silicon GPUs (Metal Performance Shaders)
    - "cpu": PyTorch on the host (no acceleration, useful for testing)
    - "auto": best available (cuda > mps > cpu)

Example:
    >>> from coastal_fdtd.core.solver_gpu import TorchExecutor, has_gpu_support
    >>> if has_gpu_support():
    ...     executor = TorchExecutor(device="auto")
    ...     executor.build()

Memory Usage:
    - Wave height fields: 3 × width × height × 4 bytes
    - Elevation: width × height × 4 bytes
    - Example (512² grid): 4 × 262144 × 4B = 4 MB
"""

from __future__ import annotations

from typing import Literal

import numpy as np
from numpy.typing import NDArray

from .errors import ConfigurationError, KernelBuildError, ResourceError

# Check for PyTorch and accelerator availability
_HAS_TORCH = False
_HAS_CUDA = False
_HAS_MPS = False
_torch = None

try:
    import torch
    _torch = torch
    _HAS_TORCH = True
    _HAS_CUDA = torch.cuda.is_available()
    _HAS_MPS = torch.backends.mps.is_available() and torch.backends.mps.is_built()
except ImportError:
    pass

DeviceName = Literal["auto", "cuda", "mps", "cpu"]


def has_torch() -> bool:
    """Check if PyTorch is installed."""
    return _HAS_TORCH


def has_gpu_support() -> bool:
    """Check if a GPU (CUDA or MPS) is available.

    Returns:
        True if PyTorch is installed and a CUDA or MPS device is usable.
    """
    return _HAS_CUDA or _HAS_MPS


def get_gpu_info() -> dict:
    """Get information about GPU support.

    Returns:
        Dict with keys: available, backend, device_name, pytorch_version
    """
    if not _HAS_TORCH:
        return {
            "available": False,
            "backend": None,
            "device_name": None,
            "pytorch_version": None,
        }
    if _HAS_CUDA:
        backend = "cuda"
        device_name = _torch.cuda.get_device_name(0)
    elif _HAS_MPS:
        backend = "mps"
        device_name = "Apple Metal"
    else:
        backend = None
        device_name = None
    return {
        "available": has_gpu_support(),
        "backend": backend,
        "device_name": device_name,
        "pytorch_version": _torch.__version__,
    }


def select_device(device: DeviceName = "auto") -> str:
    """Resolve a device request to a concrete PyTorch device name.

    Raises:
        ConfigurationError: If PyTorch is missing or the requested device
            is not available
    """
    if not _HAS_TORCH:
        raise ConfigurationError(
            "PyTorch is required for the GPU backend. Install with: pip install torch",
            code="TORCH_UNAVAILABLE",
        )

    if device == "auto":
        if _HAS_CUDA:
            return "cuda"
        if _HAS_MPS:
            return "mps"
        return "cpu"
    if device == "cuda" and not _HAS_CUDA:
        raise ConfigurationError(
            "CUDA device requested but torch.cuda.is_available() is False",
            code="DEVICE_UNAVAILABLE",
        )
    if device == "mps" and not _HAS_MPS:
        raise ConfigurationError(
            "MPS backend not available. Check PyTorch installation.",
            code="DEVICE_UNAVAILABLE",
        )
    if device not in ("cuda", "mps", "cpu"):
        raise ConfigurationError(
            f"Unknown device '{device}'. Use one of: auto, cuda, mps, cpu",
            code="DEVICE_UNAVAILABLE",
        )
    return device


def wave_update_torch(current, previous, next_, elevation, dt_dx2: float) -> None:
    """Apply the update rule to every cell of (height, width) tensors.

    Same arithmetic as coastal_fdtd.core.kernels.wave_update, written into
    next_ in place.
    """
    c = current
    k = float(np.float32(dt_dx2))

    next_.zero_()
    next_[1:-1, 1:-1] = 2 * c[1:-1, 1:-1] - previous[1:-1, 1:-1] + k * (
        c[:-2, 1:-1]
        + c[2:, 1:-1]
        + c[1:-1, :-2]
        + c[1:-1, 2:]
        - 4 * c[1:-1, 1:-1]
    )
    next_.copy_(_torch.where(elevation > 0, c, next_))


class TorchExecutor:
    """Device executor backed by PyTorch tensors.

    Args:
        device: 'cuda', 'mps', 'cpu' or 'auto'
        compile_kernel: If True, build the update with torch.compile

    Raises:
        ConfigurationError: If PyTorch is missing or the device is unavailable
    """

    name = "gpu"

    def __init__(self, device: DeviceName = "auto", compile_kernel: bool = False):
        self.device = select_device(device)
        self.compile_kernel = compile_kernel
        self._kernel = None

    @property
    def using_gpu(self) -> bool:
        """True if running on a CUDA or MPS device."""
        return self.device in ("cuda", "mps")

    def build(self) -> None:
        """Prepare the update kernel and validate it with a warm-up dispatch.

        The warm-up runs a 3x3 all-water grid with a unit impulse in the
        centre; with k = 0.25 the centre must stay at 1 and edges at 0.

        Raises:
            KernelBuildError: If compilation or the warm-up fails
        """
        kernel = wave_update_torch
        try:
            if self.compile_kernel:
                kernel = _torch.compile(wave_update_torch)

            shape = (3, 3)
            current = _torch.zeros(shape, device=self.device, dtype=_torch.float32)
            current[1, 1] = 1.0
            previous = _torch.zeros(shape, device=self.device, dtype=_torch.float32)
            next_ = _torch.zeros(shape, device=self.device, dtype=_torch.float32)
            elevation = _torch.full(shape, -1.0, device=self.device, dtype=_torch.float32)

            kernel(current, previous, next_, elevation, 0.25)
            result = next_.cpu().numpy()
        except Exception as e:
            raise KernelBuildError(
                f"Failed to build wave update kernel on '{self.device}': {e}",
                code="KERNEL_BUILD_FAILED",
            ) from e

        expected = np.zeros(shape, dtype=np.float32)
        expected[1, 1] = 1.0
        if not np.array_equal(result, expected):
            raise KernelBuildError(
                f"Wave update kernel on '{self.device}' failed validation: "
                f"got {result.tolist()}",
                code="KERNEL_BUILD_FAILED",
            )

        self._kernel = kernel

    def upload(self, array: NDArray):
        try:
            return _torch.tensor(
                np.array(array, dtype=np.float32), device=self.device, dtype=_torch.float32
            )
        except (RuntimeError, MemoryError) as e:
            raise ResourceError(
                f"Failed to allocate field of shape {np.shape(array)} on "
                f"'{self.device}': {e}",
                code="ALLOCATION_FAILED",
            ) from e

    def readback(self, handle) -> NDArray[np.float32]:
        return handle.detach().cpu().numpy().copy()

    def dispatch(self, current, previous, next_, elevation, dt_dx2: float) -> None:
        if self._kernel is None:
            raise RuntimeError("Kernel not built. Call build() first.")
        self._kernel(current, previous, next_, elevation, dt_dx2)

    def synchronize(self) -> None:
        """Block until all queued device work has finished."""
        if self.device == "cuda":
            _torch.cuda.synchronize()
        elif self.device == "mps":
            _torch.mps.synchronize()
