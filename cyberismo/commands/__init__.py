"""CLI command implementations; each `run_*` function returns an exit code."""
