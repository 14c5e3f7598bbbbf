"""Pure training engine: models, normalization, sessions, progress, analytics."""
