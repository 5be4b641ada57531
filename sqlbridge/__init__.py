"""Uniform query, introspection and export over databases and data files."""

__version__ = "0.1.0"
