"""Spreadsheet reading, header normalization and exports."""
