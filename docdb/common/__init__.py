"""Shared infrastructure: configuration, logging, error handling, client lifecycle."""
