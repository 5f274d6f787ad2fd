"""Formatting and logging utilities."""
