"""Validate code changes against declarative rules."""

__version__ = "0.1.0"
