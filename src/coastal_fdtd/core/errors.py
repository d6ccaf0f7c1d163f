"""Failure taxonomy for wave simulations.

Every error that aborts a run derives from SimulationError and carries a
category (what kind of failure) and a code (the underlying cause), so the
CLI can report both without inspecting exception types.
"""

from __future__ import annotations


class SimulationError(RuntimeError):
    """Base class for fatal simulation failures.

    Args:
        message: Human-readable description
        code: Short machine-readable cause code
    """

    category = "simulation"

    def __init__(self, message: str, code: str = "UNKNOWN"):
        super().__init__(message)
        self.code = code

    def __str__(self) -> str:
        return f"{super().__str__()} ({self.code})"


class ConfigurationError(SimulationError):
    """Raised when no usable compute target can be set up."""

    category = "configuration"


class KernelBuildError(SimulationError):
    """Raised when the update rule cannot be built or fails validation."""

    category = "build"


class ResourceError(SimulationError):
    """Raised when a field buffer cannot be allocated or uploaded."""

    category = "resource"
