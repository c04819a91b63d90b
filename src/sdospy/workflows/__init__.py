"""Command-line workflows."""
