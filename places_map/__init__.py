"""Terminal proximity browser for OpenStreetMap points of interest."""

__version__ = "1.0.0"
