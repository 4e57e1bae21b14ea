"""Command-line interface for OpenSEPA."""

from .main import app

__all__ = ["app"]
