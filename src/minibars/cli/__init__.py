"""Command line interface for minibars."""

from .main import minibars

__all__ = ["minibars"]
