"""Command-line interface for subtrack."""
