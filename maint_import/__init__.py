"""Bulk maintenance request importer."""

__version__ = "0.1.0"
