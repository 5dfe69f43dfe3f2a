"""Process configuration, environment and logging helpers."""
