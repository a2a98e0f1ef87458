"""Domain model, errors, settings and logging."""
