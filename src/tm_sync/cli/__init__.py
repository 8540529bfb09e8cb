"""Command-line interface for tm-sync."""
