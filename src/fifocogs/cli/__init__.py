"""Command line interface for fifocogs."""
