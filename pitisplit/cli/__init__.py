"""Command-line interface for pitisplit."""

from .commands import main

__all__ = ["main"]
