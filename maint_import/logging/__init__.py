"""Application logging and the structured error log."""
