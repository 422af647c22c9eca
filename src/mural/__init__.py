"""Mural — public suggestion board."""

__version__ = "0.1.0"
