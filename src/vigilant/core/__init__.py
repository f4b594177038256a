"""Domain models, validation, configuration and encoding."""
