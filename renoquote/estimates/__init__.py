"""Customer estimate requests and their style boards."""
