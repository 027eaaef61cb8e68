"""Parsing, validation, batch submission and the import wizard."""
