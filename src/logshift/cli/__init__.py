"""Command line interface for LogShift."""
