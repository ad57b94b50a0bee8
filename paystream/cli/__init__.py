"""Command-line tools (typer)."""
