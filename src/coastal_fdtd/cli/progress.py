"""Progress display for wave simulations.

Provides rich terminal UI for simulation progress tracking including:
- Progress bar with percentage
- Elapsed time and ETA
- Computational throughput (Mcells/s)
- Memory usage
"""

import time
from typing import TYPE_CHECKING

import psutil
from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table

if TYPE_CHECKING:
    from coastal_fdtd.core.solver import WaveSolver


def format_time(seconds: float) -> str:
    """Format time duration for display.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string like "0.42s", "1m 23s" or "2h 15m"
    """
    if seconds < 10:
        return f"{seconds:.2f}s"
    elif seconds < 60:
        return f"{seconds:.0f}s"
    elif seconds < 3600:
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs:02d}s"
    else:
        hours = int(seconds // 3600)
        minutes = int((seconds % 3600) // 60)
        return f"{hours}h {minutes:02d}m"


def format_bytes(num_bytes: float) -> str:
    """Format byte count for display, e.g. "1.5 GB" or "256.0 MB"."""
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if abs(num_bytes) < 1024.0:
            return f"{num_bytes:.1f} {unit}"
        num_bytes /= 1024.0
    return f"{num_bytes:.1f} PB"


class SimulationProgress:
    """Live progress bar for a wave simulation run.

    Rate-limits redraws to update_interval seconds so the display never
    dominates small, fast steps.

    Example:
        >>> progress = SimulationProgress(console, solver, num_steps)
        >>> solver.run(callback=progress.update)
        >>> progress.finish()
    """

    def __init__(
        self,
        console: Console,
        solver: "WaveSolver",
        num_steps: int,
        update_interval: float = 0.1,
    ):
        self.console = console
        self.solver = solver
        self.num_steps = num_steps
        self.update_interval = update_interval

        self.start_time = time.time()
        self.last_update = 0.0
        self.peak_memory = 0.0
        self._finished = False

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            TextColumn("•"),
            TimeRemainingColumn(),
            TextColumn("{task.fields[stats]}", style="dim"),
            console=console,
        )
        self.task = self.progress.add_task("Stepping", total=num_steps, stats="")
        self.progress.start()

    def update(self, step: int):
        """Update the display after a timestep.

        Args:
            step: Timestep just completed (0-indexed)
        """
        current_time = time.time()
        steps_completed = step + 1

        # Always draw the last step
        if (
            current_time - self.last_update < self.update_interval
            and steps_completed < self.num_steps
        ):
            return

        elapsed = current_time - self.start_time
        if elapsed > 0:
            cells_per_second = steps_completed * self.solver.grid.num_cells / elapsed
            throughput_mcells = cells_per_second / 1e6
        else:
            throughput_mcells = 0.0

        memory = psutil.Process().memory_info().rss
        self.peak_memory = max(self.peak_memory, memory)

        stats = (
            f"{throughput_mcells:.1f} Mcells/s | RSS {format_bytes(memory)} "
            f"(peak: {format_bytes(self.peak_memory)})"
        )
        self.progress.update(self.task, completed=steps_completed, stats=stats)
        self.last_update = current_time

    def finish(self):
        """Stop the progress bar. Safe to call more than once."""
        if self._finished:
            return
        self._finished = True
        self.progress.stop()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.finish()


def print_simulation_info(console: Console, solver: "WaveSolver", num_steps: int):
    """Print simulation parameters before running.

    Args:
        console: Rich console instance
        solver: Wave solver instance
        num_steps: Number of timesteps to run
    """
    params = solver.params

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Parameter", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Grid", f"{params.width} × {params.height} ({params.grid.num_cells:,} cells)")
    table.add_row("Timesteps", f"{num_steps:,}")
    table.add_row("Wave speed", f"{params.wave_speed:g}")
    table.add_row("dt / dx", f"{params.dt:g} / {params.dx:g}")
    table.add_row("(c·dt/dx)²", f"{params.dt_dx2:.6g}")
    for region in params.source:
        table.add_row("Source", f"center={region.center}, r={region.radius:g}")
    for region in params.land:
        table.add_row("Land", f"center={region.center}, r={region.radius:g}")
    table.add_row("Backend", f"{solver.backend} ({solver.device})")

    # 3 wave height buffers + elevation, float32
    table.add_row("Field memory", format_bytes(4 * params.grid.num_cells * 4))

    console.print(table)
    console.print()
