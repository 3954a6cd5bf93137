"""Core infrastructure: settings, database and security helpers."""
