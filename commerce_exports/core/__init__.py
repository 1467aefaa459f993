"""Core infrastructure: database sessions and event publishing."""
