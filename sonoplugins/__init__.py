"""Sonobuoy plugin helpers, a requirements checker and a cluster inventory reporter."""

__version__ = "0.1.0"