"""Core configuration, database and logging setup."""
