"""Command-line front end: rendering, the interactive loop and the typer app."""

from .app import app, main

__all__ = [
    "app",
    "main",
]
