"""Command implementations for the seal-commit CLI."""
