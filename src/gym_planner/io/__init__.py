"""Storage: key-value backends, serialization, settings."""
