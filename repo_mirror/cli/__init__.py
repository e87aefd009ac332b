"""Command-line interface for the repository mirroring tool."""
