"""Output formatters for CLI reports."""
