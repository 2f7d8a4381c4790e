"""Chronicle core: storage, models, errors, logging and settings."""
