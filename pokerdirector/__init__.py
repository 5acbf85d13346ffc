"""Poker tournament director core."""

__version__ = "0.1.0"
