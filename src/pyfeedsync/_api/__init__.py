"""Built-in resource endpoints."""
