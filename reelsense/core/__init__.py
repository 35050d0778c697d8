"""Core configuration, logging, errors and auth."""
