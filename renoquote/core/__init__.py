"""Logging setup shared by the API and the CLI."""
