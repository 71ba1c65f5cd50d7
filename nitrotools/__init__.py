"""Readers and tools for Nintendo DS Nitro 3D files."""

__version__ = "0.1.0"