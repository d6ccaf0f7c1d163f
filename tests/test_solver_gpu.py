"""
Unit tests for the PyTorch device executor.

Tests verify:
- GPU availability detection
- Device selection and configuration errors
- Kernel build and warm-up validation
- Device update matches the NumPy update bit for bit
- Solver runs on the GPU backend match the Python backend

Tests that only need PyTorch run on its CPU device; tests marked gpu need
a CUDA or MPS device.
"""

import warnings

import numpy as np
import pytest

from coastal_fdtd import (
    CircleRegion,
    ConfigurationError,
    KernelBuildError,
    ResourceError,
    WaveSolver,
    wave_update,
)
from coastal_fdtd.core.solver_gpu import (
    TorchExecutor,
    get_gpu_info,
    has_gpu_support,
    select_device,
    wave_update_torch,
)

torch = pytest.importorskip("torch")

requires_gpu = pytest.mark.skipif(not has_gpu_support(), reason="GPU (CUDA/MPS) not available")


@pytest.fixture
def cpu_executor():
    executor = TorchExecutor(device="cpu")
    executor.build()
    return executor


def random_fields(seed, shape):
    rng = np.random.default_rng(seed)
    current = rng.standard_normal(shape).astype(np.float32)
    previous = rng.standard_normal(shape).astype(np.float32)
    elevation = np.where(rng.random(shape) < 0.25, 10.0, -10.0).astype(np.float32)
    return current, previous, elevation


# =============================================================================
# GPU Availability Tests
# =============================================================================


class TestGPUAvailability:
    def test_has_gpu_support_returns_bool(self):
        assert isinstance(has_gpu_support(), bool)

    def test_get_gpu_info_returns_dict(self):
        info = get_gpu_info()
        assert isinstance(info, dict)
        assert {"available", "backend", "device_name", "pytorch_version"} <= info.keys()

    def test_gpu_info_consistency(self):
        info = get_gpu_info()
        assert info["available"] == has_gpu_support()
        assert info["pytorch_version"] == torch.__version__
        if info["available"]:
            assert info["backend"] in ("cuda", "mps")


# =============================================================================
# Device Selection Tests
# =============================================================================


class TestSelectDevice:
    def test_cpu_always_available(self):
        assert select_device("cpu") == "cpu"

    def test_auto_resolves(self):
        assert select_device("auto") in ("cuda", "mps", "cpu")

    def test_auto_prefers_gpu(self):
        if has_gpu_support():
            assert select_device("auto") in ("cuda", "mps")
        else:
            assert select_device("auto") == "cpu"

    def test_unavailable_cuda_raises(self, monkeypatch):
        import coastal_fdtd.core.solver_gpu as solver_gpu

        monkeypatch.setattr(solver_gpu, "_HAS_CUDA", False)
        with pytest.raises(ConfigurationError) as exc_info:
            select_device("cuda")
        assert exc_info.value.code == "DEVICE_UNAVAILABLE"

    def test_unavailable_mps_raises(self, monkeypatch):
        import coastal_fdtd.core.solver_gpu as solver_gpu

        monkeypatch.setattr(solver_gpu, "_HAS_MPS", False)
        with pytest.raises(ConfigurationError):
            select_device("mps")

    def test_unknown_device_raises(self):
        with pytest.raises(ConfigurationError):
            select_device("tpu")


# =============================================================================
# TorchExecutor Tests
# =============================================================================


class TestTorchExecutor:
    def test_build_validates(self, cpu_executor):
        assert cpu_executor.device == "cpu"
        assert not cpu_executor.using_gpu

    def test_dispatch_before_build_raises(self):
        executor = TorchExecutor(device="cpu")
        field = executor.upload(np.zeros((3, 3)))
        with pytest.raises(RuntimeError, match="build"):
            executor.dispatch(field, field, field, field, 0.25)

    def test_broken_kernel_raises_build_error(self, monkeypatch):
        import coastal_fdtd.core.solver_gpu as solver_gpu

        def broken(*args):
            raise RuntimeError("kernel exploded")

        monkeypatch.setattr(solver_gpu, "wave_update_torch", broken)
        with pytest.raises(KernelBuildError) as exc_info:
            TorchExecutor(device="cpu").build()

        assert exc_info.value.code == "KERNEL_BUILD_FAILED"
        assert exc_info.value.category == "build"
        assert "kernel exploded" in str(exc_info.value)

    def test_wrong_kernel_fails_validation(self, monkeypatch):
        import coastal_fdtd.core.solver_gpu as solver_gpu

        def wrong(current, previous, next_, elevation, dt_dx2):
            next_.fill_(1.0)

        monkeypatch.setattr(solver_gpu, "wave_update_torch", wrong)
        with pytest.raises(KernelBuildError, match="validation"):
            TorchExecutor(device="cpu").build()

    def test_upload_failure_is_resource_error(self, monkeypatch, cpu_executor):
        import coastal_fdtd.core.solver_gpu as solver_gpu

        def fail(*args, **kwargs):
            raise RuntimeError("out of memory")

        monkeypatch.setattr(solver_gpu._torch, "tensor", fail)
        with pytest.raises(ResourceError) as exc_info:
            cpu_executor.upload(np.zeros((4, 4)))
        assert exc_info.value.code == "ALLOCATION_FAILED"

    def test_upload_readback_roundtrip(self, cpu_executor):
        host = np.arange(12, dtype=np.float32).reshape(3, 4)
        handle = cpu_executor.upload(host)

        assert handle.dtype == torch.float32
        assert tuple(handle.shape) == (3, 4)
        np.testing.assert_array_equal(cpu_executor.readback(handle), host)

    def test_readback_does_not_alias_device_memory(self, cpu_executor):
        handle = cpu_executor.upload(np.zeros((2, 2)))
        result = cpu_executor.readback(handle)
        result[0, 0] = 1.0

        assert handle[0, 0].item() == 0.0

    @pytest.mark.parametrize("shape", [(5, 5), (9, 13), (32, 17), (1, 4), (2, 2)])
    def test_matches_numpy_update(self, cpu_executor, shape):
        current, previous, elevation = random_fields(seed=sum(shape), shape=shape)
        expected = np.empty(shape, dtype=np.float32)
        wave_update(current, previous, expected, elevation, 0.2)

        handles = [cpu_executor.upload(a) for a in (current, previous, np.zeros(shape), elevation)]
        cpu_executor.dispatch(*handles, 0.2)
        cpu_executor.synchronize()

        np.testing.assert_array_equal(cpu_executor.readback(handles[2]), expected)

    def test_writes_only_next(self, cpu_executor):
        current, previous, elevation = random_fields(seed=11, shape=(8, 8))
        handles = [cpu_executor.upload(a) for a in (current, previous, np.zeros((8, 8)), elevation)]

        cpu_executor.dispatch(*handles, 0.25)

        np.testing.assert_array_equal(cpu_executor.readback(handles[0]), current)
        np.testing.assert_array_equal(cpu_executor.readback(handles[1]), previous)
        np.testing.assert_array_equal(cpu_executor.readback(handles[3]), elevation)

    def test_center_impulse_scenario(self):
        current = torch.zeros((5, 5))
        current[2, 2] = 10.0
        next_ = torch.full((5, 5), 99.0)

        wave_update_torch(current, current.clone(), next_, torch.full((5, 5), -1.0), 0.25)

        assert next_[2, 2].item() == -10.0
        assert next_[1, 2].item() == 2.5
        assert next_[1, 1].item() == 0.0
        assert next_[0, 2].item() == 0.0


# =============================================================================
# Solver on the GPU Backend
# =============================================================================


class TestGPUBackendSolver:
    @pytest.fixture
    def params(self, make_params):
        return make_params(
            width=40,
            height=30,
            timesteps=60,
            source=(CircleRegion(center=(15, 12), radius=3),),
            land=(CircleRegion(center=(15, 28), radius=5),),
        )

    def test_matches_python_backend(self, params):
        with WaveSolver(params, backend="python") as solver:
            expected = solver.run().wave_height

        with warnings.catch_warnings():
            warnings.simplefilter("ignore", UserWarning)
            with WaveSolver(params, backend="gpu", device="cpu") as solver:
                result = solver.run()

        assert result.backend == "gpu"
        assert result.device == "cpu"
        np.testing.assert_array_equal(result.wave_height, expected)

    def test_cpu_device_warns(self, params):
        if has_gpu_support():
            pytest.skip("GPU present; auto device does not fall back to CPU")
        with pytest.warns(UserWarning, match="no acceleration"):
            WaveSolver(params, backend="gpu").close()

    def test_rotation_trace_on_device(self, params_5x5, impulse_5x5):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", UserWarning)
            solver = WaveSolver(params_5x5, state=impulse_5x5, backend="gpu", device="cpu")

        with solver:
            solver.step()
            solver.step()
            current = solver.get_field("current")
            previous = solver.get_field("previous")

        assert current[2, 2] == -17.5
        assert current[1, 1] == 1.25
        assert previous[2, 2] == -10.0
        assert previous[1, 2] == 2.5

    @requires_gpu
    def test_gpu_device_matches_python(self, params):
        with WaveSolver(params, backend="python") as solver:
            expected = solver.run().wave_height

        with WaveSolver(params, backend="gpu") as solver:
            assert solver.device in ("cuda", "mps")
            result = solver.run()

        # Device kernels may contract multiply-adds
        np.testing.assert_allclose(result.wave_height, expected, rtol=1e-5, atol=1e-5)

    @requires_gpu
    def test_gpu_land_frozen(self, params):
        with WaveSolver(params, backend="gpu") as solver:
            land = solver.get_field("elevation") > 0
            initial = solver.get_wave_height()[land]
            solver.run()
            np.testing.assert_array_equal(solver.get_wave_height()[land], initial)
