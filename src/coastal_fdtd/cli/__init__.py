"""Command-line interface for coastal-fdtd."""
