"""Configuration loading and built-in matching tables."""
