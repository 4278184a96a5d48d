"""Contract lifecycle and signing."""
