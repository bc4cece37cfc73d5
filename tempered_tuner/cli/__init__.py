"""Command-line interface for Tempered Tuner."""

from .main import cli, main

__all__ = ["cli", "main"]
