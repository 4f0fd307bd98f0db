"""Boba - interactive terminal client for MySQL."""

__version__ = "1.0.0"
