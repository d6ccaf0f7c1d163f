"""Command-line tool for running wave simulations.

The coastal-fdtd CLI builds a simulation from command-line options, runs
the time-stepping loop with progress tracking and reports the elapsed
wall-clock time.
"""

import sys

import click
import numpy as np
from rich.console import Console
from rich.markup import escape

from coastal_fdtd import __version__
from coastal_fdtd.core.errors import SimulationError
from coastal_fdtd.core.grid import (
    DEFAULT_DT,
    DEFAULT_DX,
    DEFAULT_HEIGHT,
    DEFAULT_TIMESTEPS,
    DEFAULT_WAVE_SPEED,
    DEFAULT_WIDTH,
    CircleRegion,
    SimulationParameters,
)
from coastal_fdtd.core.solver import WaveSolver

from .progress import SimulationProgress, format_time, print_simulation_info

console = Console()


def _regions(values) -> tuple[CircleRegion, ...]:
    return tuple(CircleRegion(center=(cy, cx), radius=r) for cy, cx, r in values)


@click.command()
@click.option("--width", type=int, default=DEFAULT_WIDTH, show_default=True, help="Grid columns")
@click.option("--height", type=int, default=DEFAULT_HEIGHT, show_default=True, help="Grid rows")
@click.option(
    "--timesteps", "-n", type=int, default=DEFAULT_TIMESTEPS, show_default=True,
    help="Number of timesteps",
)
@click.option("--wave-speed", type=float, default=DEFAULT_WAVE_SPEED, show_default=True)
@click.option("--dt", type=float, default=DEFAULT_DT, show_default=True, help="Timestep")
@click.option("--dx", type=float, default=DEFAULT_DX, show_default=True, help="Grid spacing")
@click.option(
    "--source",
    type=(int, int, float),
    multiple=True,
    metavar="CY CX R",
    help="Source circle (row, column, radius). Repeatable. Default: grid centre, r=2",
)
@click.option(
    "--land",
    type=(int, int, float),
    multiple=True,
    metavar="CY CX R",
    help="Land circle (row, column, radius). Repeatable. Default: 400 400 50",
)
@click.option(
    "--backend",
    type=click.Choice(["auto", "gpu", "python"]),
    default="auto",
    help="Force specific backend (default: auto-detect)",
)
@click.option(
    "--device",
    type=click.Choice(["auto", "cuda", "mps", "cpu"]),
    default="auto",
    help="Device for the GPU backend",
)
@click.option("--progress/--no-progress", default=True, help="Show progress bar")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output with debug info")
@click.option("--dry-run", is_flag=True, help="Validate configuration without running")
@click.version_option(version=__version__, prog_name="coastal-fdtd")
@click.pass_context
def main(
    ctx: click.Context,
    width: int,
    height: int,
    timesteps: int,
    wave_speed: float,
    dt: float,
    dx: float,
    source: tuple,
    land: tuple,
    backend: str,
    device: str,
    progress: bool,
    verbose: bool,
    dry_run: bool,
):
    """Simulate 2D water waves around land on a rectangular grid.

    A circular patch of raised water is released at t=0 and propagates
    outward. Land cells reflect the wave, the grid edges absorb it.

    Example:

    \b
        coastal-fdtd --width 256 --height 256 --timesteps 1000 \\
            --land 200 200 30 --backend gpu
    """
    options = dict(
        width=width,
        height=height,
        timesteps=timesteps,
        wave_speed=wave_speed,
        dt=dt,
        dx=dx,
    )
    if source:
        options["source"] = _regions(source)
    if land:
        options["land"] = _regions(land)

    try:
        params = SimulationParameters(**options)
    except ValueError as e:
        console.print(f"\n[bold red]Invalid configuration:[/bold red] {escape(str(e))}")
        ctx.exit(2)

    console.print("\n[bold]Wave Simulation[/bold]", style="blue")
    console.print("─" * 60)

    try:
        with WaveSolver(params, backend=backend, device=device) as solver:
            print_simulation_info(console, solver, params.timesteps)

            if dry_run:
                console.print("[yellow]Dry run - simulation not executed[/yellow]")
                return

            tracker = SimulationProgress(console, solver, params.timesteps) if progress else None
            try:
                result = solver.run(callback=tracker.update if tracker else None)
            finally:
                if tracker:
                    tracker.finish()

            peak = float(np.abs(result.wave_height).max())

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        ctx.exit(130)
    except SimulationError as e:
        console.print(
            f"\n[bold red]{e.category.capitalize()} Error {escape(f'[{e.code}]')}:[/bold red] "
            f"{escape(e.args[0])}"
        )
        if verbose:
            console.print_exception()
        ctx.exit(1)
    except Exception as e:
        console.print(f"\n[bold red]Error:[/bold red] {escape(str(e))}")
        if verbose:
            console.print_exception()
        ctx.exit(1)

    console.print("─" * 60)
    console.print("✓ [bold green]Simulation complete![/bold green]")
    console.print(f"Execution time: {result.elapsed:.6f} seconds.")
    console.print(f"  Runtime: {format_time(result.elapsed)}")
    console.print(f"  Average throughput: {result.throughput_mcells:.1f} Mcells/s")
    console.print(f"  Peak |wave height|: {peak:.4g}")
    if verbose:
        console.print(f"  Backend: {result.backend} on {result.device}")


if __name__ == "__main__":
    sys.exit(main())
