"""CLI adapter for administration commands."""
