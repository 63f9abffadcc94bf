"""Reporting over logged work hours."""
