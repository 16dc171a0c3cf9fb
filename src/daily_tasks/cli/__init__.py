"""Console entrypoint, bootstrap and slash commands."""
