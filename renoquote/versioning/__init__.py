"""Append-only version history for quotes and contracts."""
