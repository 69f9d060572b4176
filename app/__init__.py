"""App package init."""
