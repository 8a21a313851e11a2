"""Document transformation services."""
