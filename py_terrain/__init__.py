"""Procedural terrain and hydrology over Voronoi cells."""

__version__ = "0.1.0"
