"""Command line interface (python -m maint_import.cli)."""
