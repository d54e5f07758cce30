"""Core configuration, logging, database and error handling."""
