"""LogShift - log work hours per user and project."""

__version__ = "0.1.0"
