#!/usr/bin/env python3
"""
Backend Throughput Benchmark Script

Measures time-stepping throughput of the Python (NumPy) and GPU (PyTorch)
backends across grid sizes. Timing excludes buffer upload and kernel build;
each run does warm-up steps before the timed loop.

Usage:
    python3 benchmarks/benchmark_backends.py                # Full suite
    python3 benchmarks/benchmark_backends.py --quick        # Smaller grids
    python3 benchmarks/benchmark_backends.py --python-only  # Skip GPU backend
    python3 benchmarks/benchmark_backends.py --json         # Output results as JSON
"""

import argparse
import json
import sys
import warnings
from dataclasses import asdict, dataclass
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from coastal_fdtd import SimulationParameters, WaveSolver
from coastal_fdtd.core.solver_gpu import get_gpu_info, has_torch


@dataclass
class BackendResult:
    """Results from one backend/grid benchmark run."""
    backend: str
    device: str
    grid_size: tuple[int, int]
    n_steps: int
    time_ms: float
    mcells_per_sec: float


def run_backend_benchmark(
    size: int,
    backend: str,
    n_steps: int = 200,
    warmup_steps: int = 10,
) -> BackendResult:
    """Time n_steps on a size x size grid with the default island scenario.

    Args:
        size: Grid width and height
        backend: "python" or "gpu"
        n_steps: Number of timed steps
        warmup_steps: Untimed steps before the timed loop

    Returns:
        BackendResult with timing and throughput
    """
    params = SimulationParameters(width=size, height=size, timesteps=n_steps)

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", UserWarning)
        solver = WaveSolver(params, backend=backend)

    with solver:
        for _ in range(warmup_steps):
            solver.step()
        result = solver.run(timesteps=n_steps)

    return BackendResult(
        backend=result.backend,
        device=result.device,
        grid_size=params.shape,
        n_steps=n_steps,
        time_ms=result.elapsed * 1000,
        mcells_per_sec=result.throughput_mcells,
    )


def main():
    parser = argparse.ArgumentParser(description="Benchmark wave solver backends")
    parser.add_argument("--quick", action="store_true", help="Run quick benchmarks (smaller grids)")
    parser.add_argument("--python-only", action="store_true", help="Only benchmark NumPy backend")
    parser.add_argument("--steps", type=int, default=200, help="Timed steps per run")
    parser.add_argument("--json", action="store_true", help="Output results as JSON")
    args = parser.parse_args()

    sizes = [64, 128, 256] if args.quick else [128, 256, 512, 1024, 2048]
    backends = ["python"]
    if not args.python_only and has_torch():
        backends.append("gpu")

    if not args.json:
        print("=" * 70)
        print("WAVE SOLVER BACKEND BENCHMARK")
        print("=" * 70)
        info = get_gpu_info()
        print(f"GPU: {info['device_name'] or 'none'} (PyTorch {info['pytorch_version']})")
        print(f"\n{'Backend':<10} {'Device':<8} {'Grid':>12} {'Time (ms)':>12} {'Mcells/s':>10}")
        print("-" * 56)

    results = []
    for size in sizes:
        for backend in backends:
            r = run_backend_benchmark(size, backend, n_steps=args.steps)
            results.append(r)
            if not args.json:
                grid = f"{size}x{size}"
                print(
                    f"{r.backend:<10} {r.device:<8} {grid:>12} "
                    f"{r.time_ms:>12.1f} {r.mcells_per_sec:>10.1f}"
                )

    if args.json:
        print(json.dumps([asdict(r) for r in results], indent=2))

    return 0


if __name__ == "__main__":
    sys.exit(main())
